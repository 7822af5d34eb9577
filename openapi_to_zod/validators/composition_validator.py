"""
Composition validation: `allOf` merging and `oneOf`/`anyOf` unions.

Branches are always compiled with the default-nullable policy suppressed:
a branch is a schema shape, not a property value, and a nullable-wrapped
object has no `.shape` left to extend. Only the composite's own explicit
nullable marker applies, after the whole extension chain.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from ..expression import (
    ArrayLiteral,
    Code,
    Expression,
    Identifier,
    Lazy,
    Literal,
    Member,
    code,
    property_key,
    wrap_nullable,
    z,
)
from ..naming import resolve_ref_name
from .object_validator import generate_shape

# Keywords of an inline branch that only describe its shape
SHAPE_ONLY_KEYS = frozenset(("type", "properties", "required", "title", "description"))

if TYPE_CHECKING:
    from ..property_generator import PropertyGenerator, SchemaSession


# allOf


def _collect_branch_properties(
    branch: dict[str, Any],
    generator: PropertyGenerator,
    seen_refs: frozenset[str] = frozenset(),
) -> dict[str, Any]:
    """Return every property a branch contributes, following refs and nested allOf."""
    if "$ref" in branch:
        ref = branch["$ref"]
        target = generator.resolve_schema_ref(ref)
        if target is None or ref in seen_refs:
            return {}
        return _collect_branch_properties(target, generator, seen_refs | {ref})

    properties: dict[str, Any] = {}
    for nested in branch.get("allOf") or []:
        for name, definition in _collect_branch_properties(nested, generator, seen_refs).items():
            properties.setdefault(name, definition)
    for name, definition in (branch.get("properties") or {}).items():
        properties.setdefault(name, definition)
    return properties


def _branch_source(branch: dict[str, Any]) -> str:
    return resolve_ref_name(branch["$ref"]) if "$ref" in branch else "inline"


def _canonical(definition: Any) -> str:
    return json.dumps(definition, sort_keys=True, default=str)


def _scan_all_of(branches: list[dict[str, Any]], generator: PropertyGenerator) -> tuple[list[str], list[list[str]]]:
    """Return the conflict descriptions and, per branch, the property names it loses to an earlier branch."""
    first_seen: dict[str, tuple[str, str]] = {}
    conflicts: list[str] = []
    overridden: list[list[str]] = []
    for branch in branches:
        source = _branch_source(branch)
        losing: list[str] = []
        for name, definition in _collect_branch_properties(branch, generator).items():
            canonical = _canonical(definition)
            if name not in first_seen:
                first_seen[name] = (canonical, source)
                continue
            first_canonical, first_source = first_seen[name]
            if canonical != first_canonical:
                conflicts.append(f'Property "{name}" has conflicting definitions in {first_source} and {source}')
                losing.append(name)
        overridden.append(losing)
    return conflicts, overridden


def detect_all_of_conflicts(branches: list[dict[str, Any]], generator: PropertyGenerator) -> list[str]:
    """
    Find properties that are defined differently by two allOf branches.

    The first definition seen wins; every later, structurally different
    definition produces one conflict description.

    Args:
        branches: The allOf branches
        generator: Dispatcher used to resolve `$ref` branches

    Returns:
        Conflict descriptions, in branch order
    """
    return _scan_all_of(branches, generator)[0]


def is_object_like(branch: dict[str, Any], generator: PropertyGenerator) -> bool:
    """True when a branch describes an object (following `$ref` targets)."""
    if "$ref" in branch:
        target = generator.resolve_schema_ref(branch["$ref"])
        if target is None:
            return True
        return target.get("type") == "object" or "properties" in target or "allOf" in target
    return branch.get("type") == "object" or "properties" in branch or "allOf" in branch


def _omit_mask(names: list[str]) -> Code:
    """Build the `{ id: true }` argument of `.omit()`."""
    return code("{ " + ", ".join(f"{property_key(name)}: true" for name in names) + " }")


def _without_properties(branch: dict[str, Any], names: list[str]) -> dict[str, Any]:
    """Return an inline branch with the given properties (and their required entries) removed."""
    reduced = dict(branch)
    reduced["properties"] = {
        name: definition for name, definition in (branch.get("properties") or {}).items() if name not in names
    }
    if "required" in branch:
        reduced["required"] = [name for name in branch["required"] if name not in names]
    return reduced


def _has_shape(expression: Expression) -> bool:
    """False for deferred references, which expose no `.shape` or `.extend()`."""
    return not isinstance(expression.base, Lazy)


def _extension_argument(
    branch: dict[str, Any], generator: PropertyGenerator, session: SchemaSession, omitted: list[str]
) -> Any:
    """Return the `.extend()` argument for one branch, or None if it must be intersected."""
    if "$ref" in branch:
        compiled = generator.compile(branch, session, suppress_default_nullable=True)
        if isinstance(compiled.base, Identifier) and not compiled.modifiers:
            return Member(compiled.then("omit", _omit_mask(omitted)) if omitted else compiled, "shape")
        return None
    if "allOf" in branch:
        compiled = generator.compile(branch, session, suppress_default_nullable=True)
        if compiled.is_nullable or compiled.has_modifier("and") or not _has_shape(compiled):
            return None
        return Member(compiled.then("omit", _omit_mask(omitted)) if omitted else compiled, "shape")
    return generate_shape(branch, generator, session, with_jsdoc=False)


def _intersection_argument(
    branch: dict[str, Any], generator: PropertyGenerator, session: SchemaSession, omitted: list[str]
) -> Expression:
    compiled = generator.compile(branch, session, suppress_default_nullable=True)
    if omitted and "$ref" in branch and isinstance(compiled.base, Identifier) and not compiled.modifiers:
        return compiled.then("omit", _omit_mask(omitted))
    return compiled


def generate_all_of(
    branches: list[dict[str, Any]],
    nullable: bool,
    generator: PropertyGenerator,
    session: SchemaSession,
) -> Expression:
    """
    Compile an allOf composition.

    One branch is a plain alias. When every branch is object-like the result
    is a left fold of `.extend()` calls: referenced branches contribute their
    `.shape`, inline objects their shape literal. Otherwise (or when the
    first branch is a deferred reference, which has no `.extend()`) branches
    are intersected with `.and()`.

    A property defined differently by two branches keeps its first
    definition: later branches contribute their shape without it.

    Args:
        branches: The allOf branches
        nullable: The composite's own explicit nullable marker
        generator: Dispatcher used for branch schemas
        session: State of the schema being compiled

    Returns:
        The composed expression
    """
    if len(branches) == 1:
        single = generator.compile(branches[0], session, suppress_default_nullable=True)
        return wrap_nullable(single, nullable)

    conflicts, overridden = _scan_all_of(branches, generator)
    for conflict in conflicts:
        session.add_conflict(conflict)

    result = generator.compile(branches[0], session, suppress_default_nullable=True)
    object_like = _has_shape(result) and all(is_object_like(branch, generator) for branch in branches)
    for branch, omitted in zip(branches[1:], overridden[1:]):
        if omitted and "$ref" not in branch and "allOf" not in branch:
            branch = _without_properties(branch, omitted)
            if not branch["properties"] and set(branch) <= SHAPE_ONLY_KEYS:
                # Every property it declares was already defined
                continue
        argument = _extension_argument(branch, generator, session, omitted) if object_like else None
        if argument is not None:
            result = result.then("extend", argument)
        else:
            # An intersection has no `.extend()`, so the rest of the chain intersects too
            object_like = False
            result = result.then("and", _intersection_argument(branch, generator, session, omitted))

    if conflicts:
        result = result.then("describe", Literal("allOf composition conflict: " + "; ".join(conflicts)))
    return wrap_nullable(result, nullable)


# oneOf / anyOf


def _branch_required(
    branch: dict[str, Any], generator: PropertyGenerator, seen_refs: frozenset[str] = frozenset()
) -> set[str]:
    """Required property names of a branch, following refs and nested allOf."""
    if "$ref" in branch:
        ref = branch["$ref"]
        target = generator.resolve_schema_ref(ref)
        if target is None or ref in seen_refs:
            return set()
        return _branch_required(target, generator, seen_refs | {ref})

    required = set(branch.get("required") or [])
    for nested in branch.get("allOf") or []:
        required |= _branch_required(nested, generator, seen_refs)
    return required


def discriminator_required_everywhere(
    branches: list[dict[str, Any]], discriminator: str, generator: PropertyGenerator
) -> bool:
    """True when every branch declares the discriminator property as required."""
    for branch in branches:
        if discriminator not in _branch_required(branch, generator):
            return False
    return True


def _passthrough(expression: Expression) -> Expression:
    if expression.has_modifier("catchall"):
        return expression
    return expression.then("catchall", z("unknown"))


def generate_union(
    branches: list[dict[str, Any]],
    discriminator: str | None,
    nullable: bool,
    generator: PropertyGenerator,
    session: SchemaSession,
    passthrough: bool = False,
    mapping: dict[str, str] | None = None,
    kind: str = "oneOf",
) -> Expression:
    """
    Compile a oneOf/anyOf composition.

    An empty branch list is malformed input: it is reported and compiled to
    `z.never()`. A single branch is a plain alias. A discriminator is only
    honored when every branch requires it; otherwise the union falls back to
    `z.union()` and the fallback is explained with `.describe()`.

    Args:
        branches: The union branches
        discriminator: Discriminator property name, if any
        nullable: The composite's own explicit nullable marker
        generator: Dispatcher used for branch schemas
        session: State of the schema being compiled
        passthrough: Let every branch accept unevaluated keys
        mapping: Discriminator value to `$ref` mapping
        kind: "oneOf" or "anyOf" (for messages)

    Returns:
        The union expression
    """
    if not branches:
        session.add_warning(
            f"Empty {kind} in schema {session.name or '<inline>'}: no branches to choose from, "
            "generating z.never()"
        )
        return wrap_nullable(z("never"), nullable)

    if len(branches) == 1:
        single = generator.compile(branches[0], session, suppress_default_nullable=True)
        return wrap_nullable(single, nullable)

    fallback_reason = None
    if discriminator:
        if mapping:
            branches = generator.resolve_discriminator_mapping(mapping, branches)
        if not discriminator_required_everywhere(branches, discriminator, generator):
            fallback_reason = discriminator
            discriminator = None
            session.add_warning(
                f'Discriminator "{fallback_reason}" is not required in all variants of '
                f"{session.name or '<inline>'}. Falling back to z.union() instead of z.discriminatedUnion()"
            )

    compiled = [generator.compile(branch, session, suppress_default_nullable=True) for branch in branches]
    if passthrough:
        compiled = [_passthrough(expression) for expression in compiled]

    if discriminator:
        union = z("discriminatedUnion", Literal(discriminator), ArrayLiteral(tuple(compiled)))
    else:
        union = z("union", ArrayLiteral(tuple(compiled)))

    if fallback_reason:
        union = union.then(
            "describe",
            Literal(
                f"Discriminator '{fallback_reason}' is optional in some variants, "
                "so z.union() is used instead of z.discriminatedUnion()"
            ),
        )
    return wrap_nullable(union, nullable)
