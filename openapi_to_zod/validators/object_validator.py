"""
Object validation.

Builds the property shape (honoring visibility filtering and per-property
JSDoc), picks the object constructor, then layers the object-level rules in
a fixed order: additional properties, property count, required-but-undeclared
properties, pattern properties, property names and finally the cross-field
rules from :mod:`conditional_validator`.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from ..config import EmptyObjectBehavior, ObjectMode
from ..expression import (
    Code,
    Expression,
    Shape,
    ShapeProperty,
    code,
    escape_pattern,
    js_string,
    message_options,
    property_access,
    z,
)
from ..jsdoc import generate_jsdoc
from .conditional_validator import generate_dependencies, generate_dependent_required, generate_if_then_else

if TYPE_CHECKING:
    from ..property_generator import PropertyGenerator, SchemaSession

OBJECT_CONSTRUCTORS = {
    ObjectMode.STRICT: "strictObject",
    ObjectMode.NORMAL: "object",
    ObjectMode.LOOSE: "looseObject",
}


def _plural(count: int) -> str:
    return "property" if count == 1 else "properties"


def property_count_message(min_properties: int | None, max_properties: int | None) -> str:
    if min_properties is not None and max_properties is not None:
        return f"Object must have between {min_properties} and {max_properties} properties"
    if min_properties is not None:
        return f"Object must have at least {min_properties} {_plural(min_properties)}"
    return f"Object must have at most {max_properties} {_plural(max_properties or 0)}"


def generate_shape(
    schema: dict[str, Any],
    generator: PropertyGenerator,
    session: SchemaSession,
    with_jsdoc: bool = True,
) -> Shape:
    """
    Compile the declared properties of an object schema into a shape.

    Properties hidden by the visibility mode are skipped; properties that are
    not required get `.optional()`.

    Args:
        schema: The object schema
        generator: Dispatcher used for property values
        session: State of the schema being compiled
        with_jsdoc: Attach per-property JSDoc comments

    Returns:
        The object shape
    """
    required = set(schema.get("required") or [])
    properties = []
    for name, prop_schema in (schema.get("properties") or {}).items():
        if not generator.should_include_property(prop_schema):
            continue
        value = generator.compile(prop_schema, session)
        if name not in required:
            value = value.then("optional")
        jsdoc = generate_jsdoc(prop_schema, name, generator.context.include_descriptions) if with_jsdoc else ""
        properties.append(ShapeProperty(name, value, jsdoc))
    return Shape(tuple(properties))


def _pattern_properties_refine(
    schema: dict[str, Any], generator: PropertyGenerator, session: SchemaSession
) -> Code | None:
    pattern_properties = schema.get("patternProperties")
    if not isinstance(pattern_properties, dict) or not pattern_properties:
        return None
    defined = list((schema.get("properties") or {}).keys())
    patterns = list(pattern_properties.keys())
    validators: list[Any] = []
    for index, pattern in enumerate(patterns):
        if index:
            validators.append(", ")
        validators.append(generator.compile(pattern_properties[pattern], session))
    return code(
        "(obj, ctx) => { ",
        f"const definedProps = new Set({json.dumps(defined)}); ",
        f"const patterns = {json.dumps(patterns)}; ",
        "const schemas = [",
        *validators,
        "]; const regexps = patterns.map((p) => new RegExp(p)); ",
        "for (const key of Object.keys(obj)) { if (definedProps.has(key)) continue; ",
        "for (let i = 0; i < regexps.length; i++) { if (regexps[i].test(key)) { ",
        "const result = schemas[i].safeParse(obj[key]); ",
        "if (!result.success) { for (const issue of result.error.issues) { ",
        "ctx.addIssue({ ...issue, path: [key, ...issue.path], ",
        "message: `Property '${key}' (pattern '${patterns[i]}'): ${issue.message}` }); } } ",
        "break; } } } }",
    )


def _property_names_refine(schema: dict[str, Any]) -> Code | None:
    property_names = schema.get("propertyNames")
    if not isinstance(property_names, dict):
        return None
    pattern = property_names.get("pattern")
    min_length = property_names.get("minLength")
    max_length = property_names.get("maxLength")
    if pattern is None and min_length is None and max_length is None:
        return None

    checks: list[str] = []
    if pattern is not None:
        failure = js_string(f"must match pattern '{pattern}'")
        checks.append(f"if (!/{escape_pattern(pattern)}/.test(key)) failures.push({failure});")
    if min_length is not None:
        failure = js_string(f"must be at least {min_length} characters")
        checks.append(f"if (key.length < {min_length}) failures.push({failure});")
    if max_length is not None:
        failure = js_string(f"must be at most {max_length} characters")
        checks.append(f"if (key.length > {max_length}) failures.push({failure});")

    return code(
        "(obj, ctx) => { for (const key of Object.keys(obj)) { const failures: string[] = []; ",
        " ".join(checks),
        ' if (failures.length > 0) { ctx.addIssue({ code: "custom", ',
        'message: `Property name \'${key}\' ${failures.join(", ")}`, path: [key] }); } } }',
    )


def generate_object_schema(schema: dict[str, Any], generator: PropertyGenerator, session: SchemaSession) -> Expression:
    """
    Compile an object schema with declared properties or object constraints.

    `additionalProperties: false` always selects `z.strictObject`; otherwise
    the configured mode picks the constructor.

    Args:
        schema: The object schema
        generator: Dispatcher used for nested schemas
        session: State of the schema being compiled

    Returns:
        The object validator expression
    """
    context = generator.context
    additional = schema.get("additionalProperties")

    if additional is False:
        constructor = "strictObject"
    else:
        constructor = OBJECT_CONSTRUCTORS[context.mode]

    validation = z(constructor, generate_shape(schema, generator, session))

    if isinstance(additional, dict):
        validation = validation.then("catchall", generator.compile(additional, session))
    elif additional is True:
        validation = validation.then("catchall", z("unknown"))
    elif additional is None and schema.get("patternProperties"):
        # Keys matched by patterns must get through to the pattern refinement
        validation = validation.then("catchall", z("unknown"))

    min_properties = schema.get("minProperties")
    max_properties = schema.get("maxProperties")
    if min_properties is not None or max_properties is not None:
        conditions = []
        if min_properties is not None:
            conditions.append(f"Object.keys(obj).length >= {min_properties}")
        if max_properties is not None:
            conditions.append(f"Object.keys(obj).length <= {max_properties}")
        validation = validation.then(
            "refine",
            code(f"(obj) => {' && '.join(conditions)}"),
            message_options(property_count_message(min_properties, max_properties)),
        )

    declared = set((schema.get("properties") or {}).keys())
    undeclared_required = [name for name in schema.get("required") or [] if name not in declared]
    if undeclared_required:
        if not validation.has_modifier("catchall"):
            validation = validation.then("catchall", z("unknown"))
        checks = " && ".join(f"{property_access('obj', name)} !== undefined" for name in undeclared_required)
        validation = validation.then(
            "refine",
            code(f"(obj) => {checks}"),
            message_options(f"Missing required fields: {', '.join(undeclared_required)}"),
        )

    pattern_refine = _pattern_properties_refine(schema, generator, session)
    if pattern_refine is not None:
        validation = validation.then("superRefine", pattern_refine)

    names_refine = _property_names_refine(schema)
    if names_refine is not None:
        validation = validation.then("superRefine", names_refine)

    modifiers = (
        generate_dependencies(schema, generator, session)
        + generate_dependent_required(schema)
        + generate_if_then_else(schema, generator, session)
    )
    if modifiers:
        validation = Expression(validation.base, validation.modifiers + tuple(modifiers))
    return validation


def generate_empty_object(behavior: EmptyObjectBehavior) -> Expression:
    """Compile an object schema without properties according to the configured behavior."""
    if behavior == EmptyObjectBehavior.STRICT:
        return z("strictObject", Shape())
    if behavior == EmptyObjectBehavior.RECORD:
        return z("record", z("string"), z("unknown"))
    return z("looseObject", Shape())

