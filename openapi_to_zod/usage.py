"""
Schema usage analysis.

Decides for every named schema whether it is used by requests, responses or
both, by walking the operations under `paths`. The answer selects which set
of request/response option overrides a schema is compiled with.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from .graph import SchemaGraph, extract_schema_refs, iter_subschemas

HTTP_METHODS = ("get", "post", "put", "patch", "delete", "head", "options")


class SchemaUsage(str, Enum):
    REQUEST = "request"
    RESPONSE = "response"
    BOTH = "both"


def _content_schemas(container: Any) -> list[Any]:
    if not isinstance(container, dict) or not isinstance(container.get("content"), dict):
        return []
    return [media["schema"] for media in container["content"].values() if isinstance(media, dict) and "schema" in media]


def expand_transitive_references(names: set[str], schemas: dict[str, Any]) -> set[str]:
    """Add every schema reachable through `$ref`s from the given names."""
    pending = list(names)
    while pending:
        name = pending.pop()
        for ref in extract_schema_refs(schemas.get(name)):
            if ref in schemas and ref not in names:
                names.add(ref)
                pending.append(ref)
    return names


def _has_flagged_property(schema: Any, flag: str) -> bool:
    if not isinstance(schema, dict):
        return False
    for prop in (schema.get("properties") or {}).values():
        if isinstance(prop, dict) and prop.get(flag):
            return True
    return any(_has_flagged_property(child, flag) for child in iter_subschemas(schema))


class SchemaUsageAnalyzer:
    """Maps schema names to their :class:`SchemaUsage`."""

    def __init__(self, spec: dict[str, Any], graph: SchemaGraph | None = None):
        self.spec = spec
        self.schemas: dict[str, Any] = (spec.get("components") or {}).get("schemas") or {}
        self.graph = graph

    def _collect_operation_refs(self) -> tuple[set[str], set[str]]:
        request: set[str] = set()
        response: set[str] = set()
        for path_item in (self.spec.get("paths") or {}).values():
            if not isinstance(path_item, dict):
                continue
            shared_parameters = path_item.get("parameters") or []
            for method in HTTP_METHODS:
                operation = path_item.get(method)
                if not isinstance(operation, dict):
                    continue
                for schema in _content_schemas(operation.get("requestBody")):
                    request.update(extract_schema_refs(schema))
                for response_object in (operation.get("responses") or {}).values():
                    for schema in _content_schemas(response_object):
                        response.update(extract_schema_refs(schema))
                for parameter in list(shared_parameters) + list(operation.get("parameters") or []):
                    if isinstance(parameter, dict) and "schema" in parameter:
                        request.update(extract_schema_refs(parameter["schema"]))
        return request, response

    def analyze(self) -> dict[str, SchemaUsage]:
        """
        Classify schema usage.

        Without operations (or when no operation references a schema), a
        schema with only write-only properties counts as a request schema and
        one with only read-only properties as a response schema. Circular
        schemas are always marked as used by both.

        Returns:
            Usage per schema name; unused schemas are absent
        """
        request, response = self._collect_operation_refs()
        expand_transitive_references(request, self.schemas)
        expand_transitive_references(response, self.schemas)

        if not request and not response:
            for name, schema in self.schemas.items():
                read_only = _has_flagged_property(schema, "readOnly")
                write_only = _has_flagged_property(schema, "writeOnly")
                if write_only and not read_only:
                    request.add(name)
                elif read_only and not write_only:
                    response.add(name)

        usage: dict[str, SchemaUsage] = {}
        for name in self.schemas:
            if name in request and name in response:
                usage[name] = SchemaUsage.BOTH
            elif name in request:
                usage[name] = SchemaUsage.REQUEST
            elif name in response:
                usage[name] = SchemaUsage.RESPONSE

        if self.graph is not None:
            for name in self.graph.circular:
                usage[name] = SchemaUsage.BOTH
        return usage
