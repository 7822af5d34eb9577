"""
Schema classifier.

Maps a raw schema dictionary onto exactly one node variant, in the fixed
priority order the compiler relies on: multiple types, reference, const,
enum, allOf, oneOf, anyOf, not, then the primitive type switch.
"""

from __future__ import annotations

from typing import Any

from ..naming import resolve_ref_name
from .nodes import (
    AllOfNode,
    ArrayNode,
    BooleanNode,
    ConstNode,
    EnumNode,
    MultiTypeNode,
    NotNode,
    NumberNode,
    ObjectNode,
    RefNode,
    SchemaNode,
    StringNode,
    UnionNode,
    UnknownNode,
)

# Keywords that make an object schema more than an empty `{}` shape
OBJECT_CONSTRAINT_KEYS = (
    "properties",
    "required",
    "minProperties",
    "maxProperties",
    "patternProperties",
    "propertyNames",
)


def non_null_types(schema: dict[str, Any]) -> list[str]:
    """Return the declared types without "null" (handles 3.0 and 3.1 forms)."""
    type_value = schema.get("type")
    if isinstance(type_value, list):
        return [t for t in type_value if t != "null"]
    if isinstance(type_value, str):
        return [type_value]
    return []


def primary_type(schema: dict[str, Any]) -> str | None:
    """Return the first non-null declared type."""
    types = non_null_types(schema)
    return types[0] if types else None


class SchemaParser:
    """Classifies schema dictionaries into node variants."""

    def parse(self, schema: dict[str, Any], path: str = "#") -> SchemaNode:
        """
        Classify one schema level (children are not parsed).

        Args:
            schema: The schema dictionary
            path: Location of the schema (for error messages)

        Returns:
            The matching SchemaNode variant
        """
        if len(non_null_types(schema)) > 1:
            return MultiTypeNode(schema=schema, source_path=path, types=non_null_types(schema))

        if "$ref" in schema:
            ref_path = schema["$ref"]
            return RefNode(schema=schema, source_path=path, ref_path=ref_path, ref_name=resolve_ref_name(ref_path))

        if "const" in schema:
            return ConstNode(schema=schema, source_path=path, value=schema["const"])

        if "enum" in schema:
            return EnumNode(schema=schema, source_path=path, values=list(schema["enum"]))

        if "allOf" in schema:
            return AllOfNode(schema=schema, source_path=path, branches=list(schema["allOf"]))

        for kind in ("oneOf", "anyOf"):
            if kind in schema:
                return self._parse_union(schema, kind, path)

        if "not" in schema:
            return NotNode(schema=schema, source_path=path, excluded=schema["not"])

        return self._parse_type(schema, path)

    def _parse_union(self, schema: dict[str, Any], kind: str, path: str) -> UnionNode:
        discriminator = schema.get("discriminator") or {}
        return UnionNode(
            schema=schema,
            source_path=path,
            kind=kind,
            branches=list(schema[kind]),
            discriminator=discriminator.get("propertyName"),
            mapping=discriminator.get("mapping"),
        )

    def _parse_type(self, schema: dict[str, Any], path: str) -> SchemaNode:
        type_name = primary_type(schema)

        # Object keywords without a declared type still describe an object
        if type_name is None and "properties" in schema:
            type_name = "object"

        if type_name == "string":
            return StringNode(schema=schema, source_path=path)
        if type_name in ("number", "integer"):
            return NumberNode(schema=schema, source_path=path, is_integer=type_name == "integer")
        if type_name == "boolean":
            return BooleanNode(schema=schema, source_path=path)
        if type_name == "array":
            return ArrayNode(schema=schema, source_path=path)
        if type_name == "object":
            has_constraints = any(key in schema for key in OBJECT_CONSTRAINT_KEYS)
            return ObjectNode(schema=schema, source_path=path, has_constraints=has_constraints)
        return UnknownNode(schema=schema, source_path=path)
