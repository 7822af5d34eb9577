"""Schema node variants and the classifier that produces them."""

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
from .parser import SchemaParser, non_null_types, primary_type

__all__ = [
    "AllOfNode",
    "ArrayNode",
    "BooleanNode",
    "ConstNode",
    "EnumNode",
    "MultiTypeNode",
    "NotNode",
    "NumberNode",
    "ObjectNode",
    "RefNode",
    "SchemaNode",
    "SchemaParser",
    "StringNode",
    "UnionNode",
    "UnknownNode",
    "non_null_types",
    "primary_type",
]
