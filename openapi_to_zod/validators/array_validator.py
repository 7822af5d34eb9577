"""Array and tuple validation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..expression import ArrayLiteral, Expression, Literal, add_description, code, message_options, z

if TYPE_CHECKING:
    from ..property_generator import PropertyGenerator, SchemaSession


def _contains_message(min_contains: int, max_contains: int | None) -> str:
    if max_contains is None:
        return f"Array must contain at least {min_contains} matching item(s)"
    return f"Array must contain at least {min_contains} and at most {max_contains} matching item(s)"


def _generate_tuple(schema: dict[str, Any], generator: PropertyGenerator, session: SchemaSession) -> Expression:
    prefix_items = schema["prefixItems"]
    items = tuple(generator.compile(item, session) for item in prefix_items)
    validation = z("tuple", ArrayLiteral(items))

    rest = schema.get("items")
    if not isinstance(rest, dict):
        rest = schema.get("unevaluatedItems")
    if isinstance(rest, dict):
        validation = validation.then("rest", generator.compile(rest, session))
    elif schema.get("items") is False or schema.get("unevaluatedItems") is False:
        validation = validation.then(
            "refine",
            code(f"(arr) => arr.length <= {len(prefix_items)}"),
            message_options(f"Array must not have more than {len(prefix_items)} items"),
        )
    return validation


def generate_array_validation(schema: dict[str, Any], generator: PropertyGenerator, session: SchemaSession) -> Expression:
    """
    Compile an array schema.

    `prefixItems` produce a tuple (with `.rest()` for any trailing item
    schema); otherwise the `items` schema is wrapped in `z.array()` with its
    length constraints. Uniqueness and `contains` become refinements.

    Args:
        schema: The array schema
        generator: Dispatcher used for item schemas
        session: State of the schema being compiled

    Returns:
        The array validator expression
    """
    if schema.get("prefixItems"):
        validation = _generate_tuple(schema, generator, session)
    else:
        items = schema.get("items")
        item_validation = generator.compile(items, session) if isinstance(items, dict) else z("unknown")
        validation = z("array", item_validation)
        if schema.get("minItems") is not None:
            validation = validation.then("min", Literal(schema["minItems"]))
        if schema.get("maxItems") is not None:
            validation = validation.then("max", Literal(schema["maxItems"]))

    if schema.get("uniqueItems") is True:
        validation = validation.then(
            "refine",
            code("(items) => new Set(items).size === items.length"),
            message_options("Array items must be unique"),
        )

    contains = schema.get("contains")
    if isinstance(contains, dict):
        min_contains = schema.get("minContains", 1)
        max_contains = schema.get("maxContains")
        bound = f"matches >= {min_contains}"
        if max_contains is not None:
            bound += f" && matches <= {max_contains}"
        validation = validation.then(
            "refine",
            code(
                "(arr) => { const matches = arr.filter((item) => ",
                generator.compile(contains, session, suppress_default_nullable=True),
                f".safeParse(item).success).length; return {bound}; }}",
            ),
            message_options(_contains_message(min_contains, max_contains)),
        )

    return add_description(validation, schema.get("description"), generator.context.use_describe)
