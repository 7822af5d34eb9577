"""
Schema reference graph.

Walks every named schema once, records which schemas it references, and
computes strongly connected components. A schema is circular when it sits in
a component with other schemas or references itself; only references inside
one such component need deferred evaluation, because emitting components in
dependency order defines every other target before its first use.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from .naming import resolve_ref_name

logger = logging.getLogger(__name__)

# Keywords whose value is a single subschema
SUBSCHEMA_KEYS = (
    "items",
    "additionalProperties",
    "not",
    "if",
    "then",
    "else",
    "contains",
    "propertyNames",
    "unevaluatedProperties",
    "unevaluatedItems",
)

# Keywords whose value is a list of subschemas
SUBSCHEMA_LIST_KEYS = ("allOf", "oneOf", "anyOf", "prefixItems")

# Keywords whose value maps names to subschemas
SUBSCHEMA_MAP_KEYS = ("properties", "patternProperties", "dependentSchemas", "dependencies")


def iter_located_subschemas(schema: dict[str, Any], path: str = "#") -> Iterator[tuple[str, dict[str, Any]]]:
    """Yield `(json_pointer, subschema)` for the direct subschemas of a schema, in keyword order."""
    for key in SUBSCHEMA_MAP_KEYS:
        value = schema.get(key)
        if isinstance(value, dict):
            for name, child in value.items():
                if isinstance(child, dict):
                    yield f"{path}/{key}/{name}", child
    for key in SUBSCHEMA_KEYS:
        value = schema.get(key)
        if isinstance(value, dict):
            yield f"{path}/{key}", value
        elif key == "items" and isinstance(value, list):
            for index, child in enumerate(value):
                if isinstance(child, dict):
                    yield f"{path}/{key}/{index}", child
    for key in SUBSCHEMA_LIST_KEYS:
        value = schema.get(key)
        if isinstance(value, list):
            for index, child in enumerate(value):
                if isinstance(child, dict):
                    yield f"{path}/{key}/{index}", child


def iter_subschemas(schema: dict[str, Any]) -> Iterator[dict[str, Any]]:
    """Yield the direct subschemas of a schema, in keyword order."""
    for _, child in iter_located_subschemas(schema):
        yield child


def extract_schema_refs(schema: Any) -> list[str]:
    """
    Collect the names of all schemas referenced anywhere inside a schema.

    Discriminator mappings count as references because their targets become
    union branches.

    Args:
        schema: The schema to walk

    Returns:
        Referenced schema names, deduplicated, in first-seen order
    """
    refs: dict[str, None] = {}
    stack = [schema]
    while stack:
        current = stack.pop()
        if not isinstance(current, dict):
            continue
        if isinstance(current.get("$ref"), str):
            refs.setdefault(resolve_ref_name(current["$ref"]), None)
        discriminator = current.get("discriminator")
        if isinstance(discriminator, dict) and isinstance(discriminator.get("mapping"), dict):
            for target in discriminator["mapping"].values():
                refs.setdefault(resolve_ref_name(target), None)
        # Reversed so the stack pops children in document order
        stack.extend(reversed(list(iter_subschemas(current))))
    return list(refs)


def is_simple_alias(schema: Any) -> bool:
    """True for `allOf: [{$ref}]` schemas with nothing else that shapes them."""
    if not isinstance(schema, dict):
        return False
    all_of = schema.get("allOf")
    return (
        isinstance(all_of, list)
        and len(all_of) == 1
        and isinstance(all_of[0], dict)
        and "$ref" in all_of[0]
        and "properties" not in schema
        and "oneOf" not in schema
        and "anyOf" not in schema
    )


def resolve_alias(name: str, schemas: dict[str, Any]) -> str:
    """Follow a chain of simple aliases to the schema it finally names."""
    seen = {name}
    while is_simple_alias(schemas.get(name)):
        target = resolve_ref_name(schemas[name]["allOf"][0]["$ref"])
        if target in seen or target not in schemas:
            break
        seen.add(target)
        name = target
    return name


@dataclass
class SchemaGraph:
    """Reference graph of the named schemas of one document."""

    # Schema name -> names it references, in document order
    dependencies: dict[str, list[str]] = field(default_factory=dict)

    # Strongly connected components, dependencies before dependents
    components: list[list[str]] = field(default_factory=list)

    # Schemas taking part in a genuine cycle
    circular: set[str] = field(default_factory=set)

    _component_index: dict[str, int] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self._component_index = {name: index for index, component in enumerate(self.components) for name in component}

    @property
    def order(self) -> list[str]:
        """Emission order: every schema after the schemas it depends on (cycles aside)."""
        return [name for component in self.components for name in component]

    def is_circular(self, name: str) -> bool:
        return name in self.circular

    def in_same_cycle(self, first: str, second: str) -> bool:
        """True when both schemas are circular and belong to the same cycle."""
        if first not in self.circular or second not in self.circular:
            return False
        return self._component_index.get(first) == self._component_index.get(second)


class SchemaGraphBuilder:
    """Builds a :class:`SchemaGraph` from `components.schemas`."""

    def __init__(self, schemas: dict[str, Any]):
        self.schemas = schemas

    def build(self) -> SchemaGraph:
        """
        Build the dependency graph and its circular set.

        Returns:
            The graph for the named schemas
        """
        dependencies: dict[str, list[str]] = {}
        for name, schema in self.schemas.items():
            dependencies[name] = [ref for ref in extract_schema_refs(schema) if ref in self.schemas]

        components = self._strongly_connected_components(dependencies)
        circular: set[str] = set()
        for component in components:
            if len(component) > 1 or component[0] in dependencies[component[0]]:
                circular.update(component)

        graph = SchemaGraph(dependencies=dependencies, components=components, circular=circular)
        logger.debug("Circular schemas: %s", sorted(circular))
        logger.debug("Emission order: %s", graph.order)
        return graph

    def _strongly_connected_components(self, dependencies: dict[str, list[str]]) -> list[list[str]]:
        """Tarjan's algorithm, iterative so that long reference chains cannot exhaust the stack."""
        position = {name: index for index, name in enumerate(dependencies)}
        index_of: dict[str, int] = {}
        lowlink: dict[str, int] = {}
        on_stack: set[str] = set()
        stack: list[str] = []
        components: list[list[str]] = []
        counter = 0

        for root in dependencies:
            if root in index_of:
                continue
            work: list[tuple[str, int]] = [(root, 0)]
            while work:
                node, edge = work.pop()
                if edge == 0:
                    index_of[node] = lowlink[node] = counter
                    counter += 1
                    stack.append(node)
                    on_stack.add(node)
                edges = dependencies[node]
                if edge < len(edges):
                    work.append((node, edge + 1))
                    target = edges[edge]
                    if target not in index_of:
                        work.append((target, 0))
                    elif target in on_stack:
                        lowlink[node] = min(lowlink[node], index_of[target])
                    continue

                # All edges done: propagate to the parent, maybe close a component
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[node])
                if lowlink[node] == index_of[node]:
                    component = []
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.append(member)
                        if member == node:
                            break
                    components.append(sorted(component, key=position.__getitem__))
        return components
