"""Per-construct compilers used by the property generator."""

from .array_validator import generate_array_validation
from .composition_validator import detect_all_of_conflicts, generate_all_of, generate_union
from .number_validator import generate_number_validation
from .object_validator import generate_empty_object, generate_object_schema, generate_shape
from .string_validator import StringValidator

__all__ = [
    "StringValidator",
    "detect_all_of_conflicts",
    "generate_all_of",
    "generate_array_validation",
    "generate_empty_object",
    "generate_number_validation",
    "generate_object_schema",
    "generate_shape",
    "generate_union",
]
