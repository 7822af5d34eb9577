"""
Cross-field rules of object schemas: `dependencies`, `dependentRequired`
and `if`/`then`/`else`. Each rule becomes a `.superRefine()` step appended
to the object validator.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from ..expression import Code, Modifier, code, js_string, property_access

if TYPE_CHECKING:
    from ..property_generator import PropertyGenerator, SchemaSession


def _required_dependency_check(prop: str, required: list[str]) -> str:
    return (
        f"if ({property_access('obj', prop)} !== undefined) {{ "
        f"const missing = {json.dumps(required)}.filter((dep) => obj[dep] === undefined); "
        f"if (missing.length > 0) {{ ctx.addIssue({{ code: \"custom\", "
        f"message: `When '{prop}' is present, ${{missing.join(\", \")}} must also be present`, "
        f"path: {json.dumps([prop])} }}); }} }}"
    )


def _super_refine(*parts: str | Any) -> Modifier:
    return Modifier("superRefine", (code("(obj, ctx) => { ", *parts, " }"),))


def generate_dependent_required(schema: dict[str, Any]) -> list[Modifier]:
    """Compile `dependentRequired` into one superRefine over all entries."""
    dependent = schema.get("dependentRequired")
    if not isinstance(dependent, dict) or not dependent:
        return []
    checks = [_required_dependency_check(prop, list(required)) for prop, required in dependent.items() if required]
    if not checks:
        return []
    return [_super_refine(" ".join(checks))]


def generate_dependencies(schema: dict[str, Any], generator: PropertyGenerator, session: SchemaSession) -> list[Modifier]:
    """
    Compile the `dependencies` keyword.

    The array form ("when p is present, q and r must be too") shares one
    check per property; the schema form validates the whole object against
    the dependent schema whenever the property is present.

    Args:
        schema: The object schema
        generator: Dispatcher used for dependent schemas
        session: State of the schema being compiled

    Returns:
        Modifiers to append to the object validator
    """
    dependencies = schema.get("dependencies")
    if not isinstance(dependencies, dict) or not dependencies:
        return []

    modifiers: list[Modifier] = []
    for prop, dependency in dependencies.items():
        if isinstance(dependency, list):
            if dependency:
                modifiers.append(_super_refine(_required_dependency_check(prop, dependency)))
            continue
        if not isinstance(dependency, dict):
            continue
        dependent_schema = generator.compile(dependency, session, suppress_default_nullable=True)
        message_prefix = js_string(f"When '{prop}' is present, the object must satisfy additional constraints: ")
        modifiers.append(
            _super_refine(
                f"if ({property_access('obj', prop)} !== undefined) {{ const result = ",
                dependent_schema,
                ".safeParse(obj); if (!result.success) { ctx.addIssue({ code: \"custom\", "
                f"message: {message_prefix} + result.error.issues"
                '.map((issue) => (issue.path.length > 0 ? issue.path.join(".") + ": " : "") + issue.message).join("; "), '
                f"path: {json.dumps([prop])} }}); }} }}",
            )
        )
    return modifiers


def generate_if_then_else(schema: dict[str, Any], generator: PropertyGenerator, session: SchemaSession) -> list[Modifier]:
    """Compile `if`/`then`/`else` into a superRefine picking the branch by the `if` result."""
    condition = schema.get("if")
    then_schema = schema.get("then")
    else_schema = schema.get("else")
    if not isinstance(condition, dict) or (not isinstance(then_schema, dict) and not isinstance(else_schema, dict)):
        return []

    def branch_check(branch: Any) -> list[str | Code | Any]:
        if not isinstance(branch, dict):
            return ["true"]
        return [generator.compile(branch, session, suppress_default_nullable=True), ".safeParse(obj).success"]

    return [
        _super_refine(
            "const matchesIf = ",
            generator.compile(condition, session, suppress_default_nullable=True),
            ".safeParse(obj).success; const valid = matchesIf ? ",
            *branch_check(then_schema),
            " : ",
            *branch_check(else_schema),
            '; if (!valid) { ctx.addIssue({ code: "custom", message: matchesIf '
            '? "Conditional validation failed: object does not match the \'then\' schema" '
            ': "Conditional validation failed: object does not match the \'else\' schema" }); }',
        )
    ]
