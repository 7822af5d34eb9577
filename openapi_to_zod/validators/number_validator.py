"""Number and integer validation."""

from __future__ import annotations

from typing import Any

from ..expression import Expression, Literal, add_description, z


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def generate_number_validation(schema: dict[str, Any], is_integer: bool, use_describe: bool) -> Expression:
    """
    Compile a number or integer schema.

    Exclusive bounds are accepted in both spellings: the OpenAPI 3.0 boolean
    flag next to `minimum`/`maximum`, and the 3.1 numeric form.

    Args:
        schema: The numeric schema
        is_integer: True for `type: integer`
        use_describe: Whether to append `.describe()`

    Returns:
        The numeric validator expression
    """
    validation = z("number")
    if is_integer:
        validation = validation.then("int")

    exclusive_min = schema.get("exclusiveMinimum")
    exclusive_max = schema.get("exclusiveMaximum")

    if _is_number(schema.get("minimum")):
        validation = validation.then("gt" if exclusive_min is True else "gte", Literal(schema["minimum"]))
    if _is_number(exclusive_min):
        validation = validation.then("gt", Literal(exclusive_min))

    if _is_number(schema.get("maximum")):
        validation = validation.then("lt" if exclusive_max is True else "lte", Literal(schema["maximum"]))
    if _is_number(exclusive_max):
        validation = validation.then("lt", Literal(exclusive_max))

    if _is_number(schema.get("multipleOf")):
        validation = validation.then("multipleOf", Literal(schema["multipleOf"]))

    return add_description(validation, schema.get("description"), use_describe)
