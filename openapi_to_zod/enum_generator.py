"""
Top-level enum emission.

A named schema consisting of an enum compiles either to `z.enum([...])` or,
with `enum_type=typescript`, to a TypeScript `enum` declaration validated by
`z.enum(XEnum)`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .config import EnumType
from .expression import ArrayLiteral, Expression, Identifier, Literal, js_value, z
from .naming import is_numeric_value, numeric_to_enum_member, string_to_enum_member


@dataclass
class EnumResult:
    """Compiled enum: the validator and, for TypeScript enums, the declaration."""

    expression: Expression
    enum_name: str | None = None
    enum_code: str | None = None


def enum_declaration_name(type_name: str) -> str:
    """`StatusEnumOptions` -> `StatusEnum`, anything else gets an `Enum` suffix."""
    if type_name.endswith("EnumOptions"):
        return type_name[: -len("EnumOptions")] + "Enum"
    return f"{type_name}Enum"


def enum_member_name(value: Any, used_keys: set[str]) -> str:
    if is_numeric_value(value):
        return numeric_to_enum_member(value, used_keys)
    return string_to_enum_member(str(value).lower() if isinstance(value, bool) else str(value), used_keys)


def generate_enum(type_name: str, values: list[Any], enum_type: EnumType) -> EnumResult:
    """
    Compile a top-level enum schema.

    Args:
        type_name: PascalCase type name of the schema
        values: The enum values
        enum_type: Zod enum or TypeScript enum output

    Returns:
        The compiled enum
    """
    if enum_type == EnumType.TYPESCRIPT:
        enum_name = enum_declaration_name(type_name)
        used_keys: set[str] = set()
        members = [
            f"  {enum_member_name(value, used_keys)} = {_member_value(value)},"
            for value in values
            if value is not None
        ]
        enum_code = f"export enum {enum_name} {{\n" + "\n".join(members) + "\n}"
        return EnumResult(expression=z("enum", Identifier(enum_name)), enum_name=enum_name, enum_code=enum_code)

    # z.enum only accepts strings
    literals = tuple(Literal(_enum_string(value)) for value in values if value is not None)
    return EnumResult(expression=z("enum", ArrayLiteral(literals)))


def _member_value(value: Any) -> str:
    # TypeScript enum members hold numbers or strings only
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return js_value(value)
    return js_value(_enum_string(value))


def _enum_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
