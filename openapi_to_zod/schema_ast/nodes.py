"""
Schema node variants.

Every schema the compiler sees is classified into exactly one of these
variants. The raw schema dictionary travels with the node because most
keywords (constraints, documentation, extension keys) are read directly
from it by the validators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class SchemaNode:
    """Base class for all schema node variants."""

    schema: dict[str, Any] = field(default_factory=dict)
    source_path: str = ""

    @property
    def explicit_nullable(self) -> bool | None:
        """The schema's own nullability marker, or None when it has none.

        `nullable: true/false` (OpenAPI 3.0) wins; a type list containing
        "null" (OpenAPI 3.1) counts as nullable.
        """
        nullable = self.schema.get("nullable")
        if isinstance(nullable, bool):
            return nullable
        type_value = self.schema.get("type")
        if isinstance(type_value, list) and "null" in type_value:
            return True
        return None

    def is_nullable(self, default: bool = False) -> bool:
        marker = self.explicit_nullable
        return default if marker is None else marker

    @property
    def description(self) -> str | None:
        return self.schema.get("description")


@dataclass
class MultiTypeNode(SchemaNode):
    """`type: [a, b, ...]` with more than one non-null type."""

    types: list[str] = field(default_factory=list)


@dataclass
class RefNode(SchemaNode):
    """A `$ref` to a named component schema."""

    ref_path: str = ""
    ref_name: str = ""


@dataclass
class ConstNode(SchemaNode):
    """A single literal value."""

    value: Any = None


@dataclass
class EnumNode(SchemaNode):
    """A closed set of literal values."""

    values: list[Any] = field(default_factory=list)


@dataclass
class AllOfNode(SchemaNode):
    """Intersection of composition branches."""

    branches: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class UnionNode(SchemaNode):
    """`oneOf` / `anyOf` composition, optionally discriminated."""

    kind: str = "oneOf"
    branches: list[dict[str, Any]] = field(default_factory=list)
    discriminator: str | None = None
    mapping: dict[str, str] | None = None


@dataclass
class NotNode(SchemaNode):
    """A schema with a `not` exclusion."""

    excluded: dict[str, Any] = field(default_factory=dict)


@dataclass
class StringNode(SchemaNode):
    pass


@dataclass
class NumberNode(SchemaNode):
    is_integer: bool = False


@dataclass
class BooleanNode(SchemaNode):
    pass


@dataclass
class ArrayNode(SchemaNode):
    pass


@dataclass
class ObjectNode(SchemaNode):
    """An object schema; `has_constraints` is False for empty objects."""

    has_constraints: bool = False


@dataclass
class UnknownNode(SchemaNode):
    """A schema with no recognizable type (compiled to z.unknown())."""
