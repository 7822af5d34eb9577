"""
The schema dispatcher.

`PropertyGenerator.compile` classifies a schema into one node variant,
applies the nullable policy, and hands the node to the matching validator.
All state of one top-level compilation (dependencies, conflicts, warnings,
nesting depth) lives in an explicit :class:`SchemaSession`; the generator
itself only holds read-only inputs and the context-owned caches.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from .config import ContextOptions, EmptyObjectBehavior, GenerationContext, SchemaType
from .errors import OpenApiToZodError, RecursionDepthError, SchemaGenerationError, UnresolvedReferenceError
from .expression import (
    ArrayLiteral,
    Expression,
    Literal,
    add_description,
    code,
    lazy,
    message_options,
    ref,
    wrap_nullable,
    z,
)
from .graph import SchemaGraph, resolve_alias
from .naming import allocate_name, resolve_ref_name, strip_prefix, to_camel_case, to_pascal_case
from .schema_ast import (
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
    SchemaParser,
    StringNode,
    UnionNode,
    UnknownNode,
)
from .validators import (
    StringValidator,
    generate_all_of,
    generate_array_validation,
    generate_empty_object,
    generate_number_validation,
    generate_object_schema,
    generate_union,
)

logger = logging.getLogger(__name__)

# Callees whose result is an object validator that can take a catchall
OBJECT_CALLEES = ("z.object", "z.strictObject", "z.looseObject")
UNION_CALLEES = ("z.union", "z.discriminatedUnion")
UNCACHEABLE_KEYWORDS = ("$ref", "allOf", "oneOf", "anyOf")


@dataclass
class SchemaSession:
    """State of compiling one top-level schema.

    A fresh session is created for every named schema, so conflicts and
    warnings never leak from one schema (or one generator) into another.
    """

    name: str | None = None
    dependencies: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    depth: int = 0

    def add_dependency(self, name: str) -> None:
        if name not in self.dependencies:
            self.dependencies.append(name)

    def add_conflict(self, conflict: str) -> None:
        if conflict in self.conflicts:
            return
        self.conflicts.append(conflict)
        logger.warning("allOf composition conflict in %s: %s", self.name or "<inline>", conflict)

    def add_warning(self, message: str) -> None:
        if message in self.warnings:
            return
        self.warnings.append(message)
        logger.warning("%s", message)


class PropertyGenerator:
    """Compiles schemas into Zod expression trees."""

    # Which properties survive each visibility mode
    INCLUSION_RULES = {
        SchemaType.REQUEST: lambda schema: not schema.get("readOnly"),
        SchemaType.RESPONSE: lambda schema: not schema.get("writeOnly"),
        SchemaType.ALL: lambda schema: True,
    }

    def __init__(self, schemas: dict[str, Any], context: GenerationContext, graph: SchemaGraph | None = None):
        """
        Initialize the dispatcher.

        Args:
            schemas: The named schemas (`components.schemas`)
            context: Generation options and caches
            graph: Reference graph of the schemas (for circularity decisions)
        """
        self.schemas = schemas
        self.context = context
        self.graph = graph or SchemaGraph()
        self.parser = SchemaParser()
        self.string_validator = StringValidator()
        self._const_names, self._type_names = self._allocate_names()

    def with_options(self, options: ContextOptions) -> PropertyGenerator:
        """Return a dispatcher using request/response overrides, sharing schemas, graph and caches."""
        return PropertyGenerator(self.schemas, self.context.for_options(options), self.graph)

    # Naming

    def _allocate_names(self) -> tuple[dict[str, str], dict[str, str]]:
        """Give every named schema a unique constant and type name, in document order."""
        const_names: dict[str, str] = {}
        type_names: dict[str, str] = {}
        used_consts: set[str] = set()
        used_types: set[str] = set()
        for name in self.schemas:
            stripped = strip_prefix(name, self.context.strip_schema_prefix)
            const_base = to_camel_case(stripped, self.context.prefix, self.context.suffix)
            const_names[name] = f"{allocate_name(const_base, used_consts)}Schema"
            type_names[name] = allocate_name(to_pascal_case(stripped), used_types)
            if const_names[name] != f"{const_base}Schema":
                logger.warning("Schema name %s collides with another schema, using %s", name, const_names[name])
        return const_names, type_names

    def schema_const_name(self, name: str) -> str:
        """Name of the generated constant for a schema, e.g. `userSchema`."""
        if name in self._const_names:
            return self._const_names[name]
        stripped = strip_prefix(name, self.context.strip_schema_prefix)
        return f"{to_camel_case(stripped, self.context.prefix, self.context.suffix)}Schema"

    def type_name(self, name: str) -> str:
        """Name of the inferred TypeScript type for a schema, e.g. `User`."""
        if name in self._type_names:
            return self._type_names[name]
        return to_pascal_case(strip_prefix(name, self.context.strip_schema_prefix))

    # Visibility filtering

    def should_include_property(self, schema: Any) -> bool:
        if not isinstance(schema, dict):
            return True
        return self.INCLUSION_RULES[self.context.schema_type](schema)

    def filter_schema(self, schema: Any) -> Any:
        """
        Drop properties hidden by the visibility mode, recursively.

        Nested objects, array items and composition branches are filtered as
        well, and required entries of removed properties go with them.
        References are left alone; their targets are filtered when compiled.

        Args:
            schema: The schema to filter

        Returns:
            A filtered copy (or the schema itself when nothing applies)
        """
        if self.context.schema_type == SchemaType.ALL or not isinstance(schema, dict) or "$ref" in schema:
            return schema

        result = dict(schema)
        properties = schema.get("properties")
        if isinstance(properties, dict):
            kept = {
                name: self.filter_schema(prop)
                for name, prop in properties.items()
                if self.should_include_property(prop)
            }
            result["properties"] = kept
            required = [name for name in schema.get("required") or [] if name in kept or name not in properties]
            if required:
                result["required"] = required
            else:
                result.pop("required", None)

        items = schema.get("items")
        if isinstance(items, dict):
            result["items"] = self.filter_schema(items)

        for key in ("allOf", "oneOf", "anyOf"):
            if isinstance(schema.get(key), list):
                result[key] = [self.filter_schema(branch) for branch in schema[key]]
        return result

    # Reference resolution

    def resolve_schema_ref(self, ref_path: str) -> dict[str, Any] | None:
        return self.schemas.get(resolve_ref_name(ref_path))

    def is_circular_through_alias(self, from_name: str, to_name: str) -> bool:
        """True when `to_name` is an alias chain leading back to `from_name`."""
        return to_name != from_name and resolve_alias(to_name, self.schemas) == from_name

    def resolve_discriminator_mapping(
        self, mapping: dict[str, str], branches: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """
        Reorder union branches to follow the discriminator mapping.

        Mapped refs come first, in mapping order; a mapped ref without a
        matching branch gets a synthesized `$ref` branch. Unmapped branches
        follow in their original order.

        Args:
            mapping: Discriminator value -> `$ref`
            branches: The union branches

        Returns:
            The reordered branches
        """
        ordered: list[dict[str, Any]] = []
        for target in mapping.values():
            match = next(
                (
                    branch
                    for branch in branches
                    if isinstance(branch.get("$ref"), str)
                    and (branch["$ref"] == target or branch["$ref"].endswith(target))
                ),
                None,
            )
            candidate = match if match is not None else {"$ref": target}
            if not any(candidate is existing or candidate == existing for existing in ordered):
                ordered.append(candidate)
        for branch in branches:
            if not any(branch is existing for existing in ordered):
                ordered.append(branch)
        return ordered

    # Compilation

    def compile_named(self, name: str, schema: dict[str, Any]) -> tuple[Expression, SchemaSession]:
        """
        Compile one top-level named schema in a fresh session.

        Args:
            name: The schema name
            schema: The schema definition

        Returns:
            The expression and the session holding its dependencies, conflicts and warnings

        Raises:
            UnresolvedReferenceError: If a `$ref` cannot be resolved
            SchemaGenerationError: If the schema cannot be compiled
        """
        session = SchemaSession(name=name)
        try:
            expression = self.compile(schema, session, is_top_level=True)
        except OpenApiToZodError:
            raise
        except (TypeError, ValueError, KeyError, AttributeError) as exc:
            raise SchemaGenerationError(
                f"Failed to generate schema '{name}': {exc}", schema_name=name, context={"original_error": str(exc)}
            ) from exc
        return expression, session

    def compile(
        self,
        schema: Any,
        session: SchemaSession,
        is_top_level: bool = False,
        suppress_default_nullable: bool = False,
    ) -> Expression:
        """
        Compile a schema to a Zod expression.

        Args:
            schema: The schema to compile
            session: State of the top-level schema being compiled
            is_top_level: The schema is a named-schema definition
            suppress_default_nullable: Ignore `default_nullable` (composition branches)

        Returns:
            The compiled expression

        Raises:
            RecursionDepthError: If nesting exceeds `max_depth`
        """
        # Boolean schemas (JSON Schema 2020-12)
        if schema is True:
            return z("unknown")
        if schema is False:
            return z("never")
        if not isinstance(schema, dict):
            raise SchemaGenerationError(
                f"Expected a schema object, got {type(schema).__name__}", schema_name=session.name
            )

        session.depth += 1
        try:
            if session.depth > self.context.max_depth:
                raise RecursionDepthError(
                    f"Maximum schema nesting depth of {self.context.max_depth} exceeded"
                    f" while compiling '{session.name or '<inline>'}'",
                    schema_name=session.name,
                    context={"max_depth": self.context.max_depth},
                )
            return self._compile_cached(schema, session, is_top_level, suppress_default_nullable)
        finally:
            session.depth -= 1

    def _cache_key(self, schema: dict[str, Any], is_top_level: bool, suppress_default_nullable: bool) -> str:
        return json.dumps(
            {
                "schema": schema,
                "type": self.context.schema_type.value,
                "mode": self.context.mode.value,
                "top": is_top_level,
                "suppress": suppress_default_nullable,
                "describe": self.context.use_describe,
                "descriptions": self.context.include_descriptions,
            },
            sort_keys=True,
            default=str,
        )

    def _compile_cached(
        self, schema: dict[str, Any], session: SchemaSession, is_top_level: bool, suppress_default_nullable: bool
    ) -> Expression:
        key = self._cache_key(schema, is_top_level, suppress_default_nullable)
        # Only pure shapes compiled outside a named schema are memoized:
        # references and compositions report into the session of their schema
        if session.name is not None or any(f'"{keyword}"' in key for keyword in UNCACHEABLE_KEYWORDS):
            return self._compile(schema, session, is_top_level, suppress_default_nullable)

        cached = self.context.schema_cache.get(key)
        if cached is not None:
            return cached
        result = self._compile(schema, session, is_top_level, suppress_default_nullable)
        self.context.schema_cache.set(key, result)
        return result

    def _compile(
        self, schema: dict[str, Any], session: SchemaSession, is_top_level: bool, suppress_default_nullable: bool
    ) -> Expression:
        if self.context.schema_type != SchemaType.ALL and "properties" in schema:
            schema = self.filter_schema(schema)

        node = self.parser.parse(schema, self._path(session))

        # The default applies to property values only: never to definitions,
        # enums, literals or composition branches
        apply_default = (
            not is_top_level and "enum" not in schema and "const" not in schema and not suppress_default_nullable
        )
        nullable = node.is_nullable(self.context.default_nullable if apply_default else False)

        if isinstance(node, (AllOfNode, UnionNode)):
            return self._compile_composition(node, session)

        return wrap_nullable(self._dispatch(node, session, is_top_level), nullable)

    @staticmethod
    def _path(session: SchemaSession) -> str:
        return f"#/components/schemas/{session.name}" if session.name else "#"

    def _dispatch(self, node: SchemaNode, session: SchemaSession, is_top_level: bool) -> Expression:
        context = self.context
        schema = node.schema

        if isinstance(node, MultiTypeNode):
            return self._compile_multi_type(node, session)
        if isinstance(node, RefNode):
            return self._compile_ref(node, session, is_top_level)
        if isinstance(node, ConstNode):
            return z("literal", Literal(node.value))
        if isinstance(node, EnumNode):
            return self._compile_enum(node)
        if isinstance(node, NotNode):
            return self._compile_not(node, session)
        if isinstance(node, StringNode):
            return self.string_validator.generate(schema, context)
        if isinstance(node, NumberNode):
            return generate_number_validation(schema, node.is_integer, context.use_describe)
        if isinstance(node, BooleanNode):
            return add_description(z("boolean"), node.description, context.use_describe)
        if isinstance(node, ArrayNode):
            return generate_array_validation(schema, self, session)
        if isinstance(node, ObjectNode):
            if node.has_constraints:
                validation = generate_object_schema(schema, self, session)
                if "unevaluatedProperties" in schema:
                    validation = self.apply_unevaluated_properties(validation, schema, session)
            elif isinstance(schema.get("additionalProperties"), dict):
                # A map type: only the value schema is known
                validation = z("record", z("string"), self.compile(schema["additionalProperties"], session))
            elif schema.get("additionalProperties") is False:
                validation = generate_empty_object(EmptyObjectBehavior.STRICT)
            else:
                validation = generate_empty_object(context.empty_object_behavior)
            return add_description(validation, node.description, context.use_describe)
        if isinstance(node, UnknownNode):
            return add_description(z("unknown"), node.description, context.use_describe)
        raise SchemaGenerationError(f"Unhandled schema node {type(node).__name__}", schema_name=session.name)

    def _compile_multi_type(self, node: MultiTypeNode, session: SchemaSession) -> Expression:
        members = []
        for type_name in node.types:
            member = {key: value for key, value in node.schema.items() if key != "nullable"}
            member["type"] = type_name
            members.append(self.compile(member, session, suppress_default_nullable=True))
        return z("union", ArrayLiteral(tuple(members)))

    def _compile_ref(self, node: RefNode, session: SchemaSession, is_top_level: bool) -> Expression:
        ref_name = node.ref_name
        if ref_name not in self.schemas:
            raise UnresolvedReferenceError(node.ref_path, path=node.source_path, schema_name=session.name)

        resolved = resolve_alias(ref_name, self.schemas)
        current = session.name
        if current and not is_top_level:
            session.add_dependency(ref_name)

        schema_name = self.schema_const_name(resolved)
        if current is not None and (
            ref_name == current
            or resolved == current
            or self.is_circular_through_alias(current, ref_name)
            or self.graph.in_same_cycle(current, ref_name)
        ):
            annotation = f"z.ZodType<{self.type_name(resolved)}>" if self.context.separate_types_file else "z.ZodTypeAny"
            return lazy(schema_name, annotation)
        return ref(schema_name)

    def _compile_enum(self, node: EnumNode) -> Expression:
        values = node.values
        if values and all(isinstance(value, bool) for value in values):
            return z("boolean")
        if all(isinstance(value, str) for value in values):
            return z("enum", ArrayLiteral(tuple(Literal(value) for value in values)))
        return z("union", ArrayLiteral(tuple(z("literal", Literal(value)) for value in values)))

    def _compile_not(self, node: NotNode, session: SchemaSession) -> Expression:
        schema = node.schema
        excluded = self.compile(node.excluded, session, suppress_default_nullable=True)
        if any(key in schema for key in ("type", "properties", "items")):
            base_schema = {key: value for key, value in schema.items() if key not in ("not", "nullable")}
            base = self.compile(base_schema, session, suppress_default_nullable=True)
        else:
            base = z("unknown")
        return base.then(
            "refine",
            code("(val) => !", excluded, ".safeParse(val).success"),
            message_options("Value must not match the excluded schema"),
        )

    def _compile_composition(self, node: AllOfNode | UnionNode, session: SchemaSession) -> Expression:
        # Compositions only honor their own explicit nullable marker
        nullable = node.is_nullable(False)
        schema = node.schema
        if isinstance(node, AllOfNode):
            result = generate_all_of(node.branches, nullable, self, session)
        else:
            result = generate_union(
                node.branches,
                node.discriminator,
                nullable,
                self,
                session,
                passthrough="unevaluatedProperties" in schema,
                mapping=node.mapping,
                kind=node.kind,
            )
        if "unevaluatedProperties" in schema:
            result = self.apply_unevaluated_properties(result, schema, session)
        return result

    def _evaluated_properties(self, schema: dict[str, Any]) -> list[str]:
        evaluated: dict[str, None] = dict.fromkeys((schema.get("properties") or {}).keys())
        for key in ("allOf", "oneOf", "anyOf"):
            for branch in schema.get(key) or []:
                if not isinstance(branch, dict):
                    continue
                target = self.resolve_schema_ref(branch["$ref"]) if "$ref" in branch else branch
                for name in ((target or {}).get("properties") or {}).keys():
                    evaluated.setdefault(name, None)
        return list(evaluated)

    def apply_unevaluated_properties(
        self, expression: Expression, schema: dict[str, Any], session: SchemaSession
    ) -> Expression:
        """
        Enforce `unevaluatedProperties` with a refinement over the evaluated property names.

        Extension chains and object validators get `.catchall(z.unknown())`
        first so unknown keys reach the refinement; union branches were
        already opened up when the union was built. A trailing `.nullable()`
        stays last.

        Args:
            expression: The compiled composition or object
            schema: The schema carrying `unevaluatedProperties`
            session: State of the schema being compiled

        Returns:
            The refined expression
        """
        unevaluated = schema.get("unevaluatedProperties")
        if unevaluated is not False and not isinstance(unevaluated, dict):
            return expression

        nullable = expression.is_nullable
        if nullable:
            expression = Expression(expression.base, expression.modifiers[:-1])

        if expression.callee not in UNION_CALLEES and not expression.has_modifier("catchall"):
            if expression.has_modifier("extend") or (
                expression.callee in OBJECT_CALLEES and expression.callee != "z.strictObject"
            ):
                expression = expression.then("catchall", z("unknown"))

        evaluated = f"new Set({json.dumps(self._evaluated_properties(schema))})"
        if unevaluated is False:
            expression = expression.then(
                "refine",
                code(f"(obj) => Object.keys(obj).every((key) => {evaluated}.has(key))"),
                message_options("No unevaluated properties allowed"),
            )
        else:
            expression = expression.then(
                "refine",
                code(
                    f"(obj) => Object.keys(obj).filter((key) => !{evaluated}.has(key)).every((key) => ",
                    self.compile(unevaluated, session, suppress_default_nullable=True),
                    ".safeParse(obj[key]).success)",
                ),
                message_options("Unevaluated properties must match the schema"),
            )
        return wrap_nullable(expression, nullable)
