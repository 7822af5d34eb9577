"""OpenAPI to Zod Generator

A Python package for generating Zod runtime validators (TypeScript) from the
schemas of an OpenAPI 3.0/3.1 document, with circular reference handling,
composition merging and readOnly/writeOnly filtering.
"""

__version__ = "1.0.0"
__author__ = "François Lagunas"

from .config import (
    ContextOptions,
    EmptyObjectBehavior,
    EnumType,
    GenerationContext,
    GeneratorConfig,
    ObjectMode,
    SchemaType,
)
from .errors import (
    ConfigurationError,
    OpenApiToZodError,
    RecursionDepthError,
    SchemaGenerationError,
    SpecValidationError,
    UnresolvedReferenceError,
)
from .generator import CompiledSchema, GenerationResult, GenerationStats, OpenApiGenerator, generate_zod_schemas
from .loader import load_spec
from .property_generator import PropertyGenerator, SchemaSession

__all__ = [
    "OpenApiGenerator",
    "GeneratorConfig",
    "GenerationContext",
    "ContextOptions",
    "SchemaType",
    "ObjectMode",
    "EmptyObjectBehavior",
    "EnumType",
    "PropertyGenerator",
    "SchemaSession",
    "CompiledSchema",
    "GenerationResult",
    "GenerationStats",
    "generate_zod_schemas",
    "load_spec",
    "OpenApiToZodError",
    "ConfigurationError",
    "SpecValidationError",
    "UnresolvedReferenceError",
    "SchemaGenerationError",
    "RecursionDepthError",
]
