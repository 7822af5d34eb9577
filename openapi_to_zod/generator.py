"""
Per-document file assembly.

`OpenApiGenerator` validates an OpenAPI document, builds the schema reference
graph, compiles every named schema and renders one TypeScript module with
jinja2: header, optional statistics, imports and one block per schema in
dependency order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jinja2

from . import __version__
from .atomic_writer import AtomicWriter
from .cli_utils import reconstruct_command_line
from .config import GenerationContext, GeneratorConfig
from .enum_generator import generate_enum
from .errors import SpecValidationError, UnresolvedReferenceError
from .expression import Expression, ExpressionSerializer, Lazy, add_description, wrap_nullable
from .graph import SchemaGraph, SchemaGraphBuilder, iter_located_subschemas
from .jsdoc import add_conflict_warnings, generate_jsdoc
from .naming import resolve_ref_name
from .property_generator import PropertyGenerator
from .schema_ast import EnumNode
from .usage import SchemaUsage, SchemaUsageAnalyzer

logger = logging.getLogger(__name__)

# Modifiers that count as value constraints in the statistics block
CONSTRAINT_MODIFIERS = frozenset(("min", "max", "gt", "gte", "lt", "lte", "length", "regex", "multipleOf"))

TYPED_LAZY_PREFIX = "z.ZodType<"


@dataclass
class CompiledSchema:
    """One compiled named schema."""

    name: str
    schema_name: str
    type_name: str
    expression: Expression
    jsdoc: str = ""
    dependencies: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    enum_code: str | None = None

    @property
    def rendered(self) -> str:
        return ExpressionSerializer().serialize(self.expression)

    @property
    def declaration(self) -> str:
        return f"export const {self.schema_name} = {self.rendered};"

    @property
    def type_declaration(self) -> str:
        return f"export type {self.type_name} = z.infer<typeof {self.schema_name}>;"

    def iter_expressions(self) -> Iterator[Expression]:
        """Yield every expression node of the compiled tree."""
        for node in self.expression.walk():
            if isinstance(node, Expression):
                yield node

    def has_lazy_reference(self) -> bool:
        return any(isinstance(node, Lazy) for node in self.expression.walk())

    def has_discriminated_union(self) -> bool:
        return any(expression.callee == "z.discriminatedUnion" for expression in self.iter_expressions())

    def has_constraints(self) -> bool:
        return any(
            modifier.name in CONSTRAINT_MODIFIERS
            for expression in self.iter_expressions()
            for modifier in expression.modifiers
        )


@dataclass
class GenerationStats:
    total_schemas: int = 0
    circular_references: int = 0
    discriminated_unions: int = 0
    with_constraints: int = 0
    all_of_conflicts: int = 0

    @staticmethod
    def from_schemas(schemas: list[CompiledSchema]) -> GenerationStats:
        return GenerationStats(
            total_schemas=len(schemas),
            circular_references=sum(1 for schema in schemas if schema.has_lazy_reference()),
            discriminated_unions=sum(1 for schema in schemas if schema.has_discriminated_union()),
            with_constraints=sum(1 for schema in schemas if schema.has_constraints()),
            all_of_conflicts=sum(len(schema.conflicts) for schema in schemas),
        )


@dataclass
class GenerationResult:
    """Everything one generation run produced, before rendering."""

    schemas: dict[str, CompiledSchema]
    order: list[str]
    warnings: list[str]
    graph: SchemaGraph
    stats: GenerationStats

    def ordered_schemas(self) -> list[CompiledSchema]:
        return [self.schemas[name] for name in self.order]


class OpenApiGenerator:
    """Generates a Zod schema module from an OpenAPI document."""

    def __init__(self, spec: dict[str, Any], config: GeneratorConfig | None = None):
        """
        Initialize the generator.

        Args:
            spec: The parsed OpenAPI document
            config: Generation options

        Raises:
            ConfigurationError: If the options are invalid
            SpecValidationError: If the document has no schemas or broken references
        """
        self.spec = spec
        self.config = config or GeneratorConfig()
        self.context = GenerationContext.from_config(self.config)
        self.schemas = self._extract_schemas(spec)
        self.validate_references()

        self.graph = SchemaGraphBuilder(self.schemas).build()
        self.usage = SchemaUsageAnalyzer(spec, self.graph).analyze()

        base = PropertyGenerator(self.schemas, self.context, self.graph)
        self.request_generator = base.with_options(self.config.request)
        self.response_generator = base.with_options(self.config.response)
        self._setup_templates()

    def _setup_templates(self) -> None:
        """Set up Jinja2 templates."""
        template_dir = Path(__file__).parent / "templates" / "zod"
        self.jinja_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            lstrip_blocks=True,
            trim_blocks=True,
        )
        self.prefix_template = self.jinja_env.get_template("prefix.ts.jinja2")
        self.schema_template = self.jinja_env.get_template("schema.ts.jinja2")

    # Validation

    @staticmethod
    def _extract_schemas(spec: Any) -> dict[str, Any]:
        if not isinstance(spec, dict):
            raise SpecValidationError("OpenAPI document must be a mapping")
        schemas = (spec.get("components") or {}).get("schemas")
        if not isinstance(schemas, dict) or not schemas:
            raise SpecValidationError("No schemas found in OpenAPI spec (components.schemas is missing or empty)")
        for name, schema in schemas.items():
            if not isinstance(schema, (dict, bool)):
                raise SpecValidationError(
                    f"Schema '{name}' must be an object, got {type(schema).__name__}", {"schema_name": name}
                )
        return schemas

    def validate_references(self) -> None:
        """
        Check that every `$ref` inside the named schemas resolves.

        Raises:
            UnresolvedReferenceError: For the first reference that points nowhere
        """
        for name, schema in self.schemas.items():
            if not isinstance(schema, dict):
                continue
            pending = [(f"#/components/schemas/{name}", schema)]
            while pending:
                path, current = pending.pop()
                ref = current.get("$ref")
                if isinstance(ref, str) and resolve_ref_name(ref) not in self.schemas:
                    raise UnresolvedReferenceError(ref, path=path, schema_name=name)
                discriminator = current.get("discriminator")
                if isinstance(discriminator, dict) and isinstance(discriminator.get("mapping"), dict):
                    for value, target in discriminator["mapping"].items():
                        if resolve_ref_name(target) not in self.schemas:
                            raise UnresolvedReferenceError(
                                target, path=f"{path}/discriminator/mapping/{value}", schema_name=name
                            )
                pending.extend(reversed(list(iter_located_subschemas(current, path))))

    # Compilation

    def generator_for(self, name: str) -> PropertyGenerator:
        """Schemas used only by responses compile with the response overrides."""
        if self.usage.get(name) == SchemaUsage.RESPONSE:
            return self.response_generator
        return self.request_generator

    def compile_schema(self, name: str) -> CompiledSchema:
        """
        Compile one named schema.

        Args:
            name: The schema name

        Returns:
            The compiled schema
        """
        schema = self.schemas[name]
        generator = self.generator_for(name)
        context = generator.context
        schema_name = generator.schema_const_name(name)
        type_name = generator.type_name(name)

        node = generator.parser.parse(schema) if isinstance(schema, dict) else None
        if isinstance(node, EnumNode):
            enum = generate_enum(type_name, node.values, self.config.enum_type)
            expression = wrap_nullable(enum.expression, node.is_nullable(False))
            expression = add_description(expression, node.description, context.use_describe)
            return CompiledSchema(
                name=name,
                schema_name=schema_name,
                type_name=type_name,
                expression=expression,
                jsdoc=generate_jsdoc(schema, name, context.include_descriptions),
                enum_code=enum.enum_code,
            )

        expression, session = generator.compile_named(name, schema)
        jsdoc = generate_jsdoc(schema, name, context.include_descriptions)
        return CompiledSchema(
            name=name,
            schema_name=schema_name,
            type_name=type_name,
            expression=expression,
            jsdoc=add_conflict_warnings(jsdoc, session.conflicts),
            dependencies=list(session.dependencies),
            conflicts=list(session.conflicts),
            warnings=list(session.warnings),
        )

    def generate_result(self) -> GenerationResult:
        """
        Compile every named schema.

        Schemas are compiled in document order and ordered for emission so
        that every schema follows the schemas it references.

        Returns:
            The generation result

        Raises:
            UnresolvedReferenceError: If a reference cannot be resolved
            SchemaGenerationError: If a schema cannot be compiled
        """
        compiled: dict[str, CompiledSchema] = {}
        warnings: list[str] = []
        for name in self.schemas:
            logger.debug("Compiling schema %s", name)
            result = self.compile_schema(name)
            compiled[name] = result
            warnings.extend(f"{name}: {conflict}" for conflict in result.conflicts)
            warnings.extend(result.warnings)

        order = self.graph.order
        return GenerationResult(
            schemas=compiled,
            order=order,
            warnings=warnings,
            graph=self.graph,
            stats=GenerationStats.from_schemas([compiled[name] for name in order]),
        )

    # Rendering

    def _command_comment(self) -> str:
        try:
            from .openapi_to_zod import openapi_to_zod as click_command  # noqa

            command_line = reconstruct_command_line(click_command)
        except (ImportError, AttributeError):
            command_line = "openapi_to_zod"
        return f"// Generated by openapi_to_zod v{__version__} : {command_line}"

    @staticmethod
    def _type_imports(schemas: list[CompiledSchema]) -> list[str]:
        names: set[str] = set()
        for schema in schemas:
            for node in schema.expression.walk():
                if isinstance(node, Lazy) and node.annotation.startswith(TYPED_LAZY_PREFIX):
                    names.add(node.annotation[len(TYPED_LAZY_PREFIX) : -1])
        return sorted(names)

    def render(self, result: GenerationResult) -> str:
        """Render a generation result as a TypeScript module."""
        schemas = result.ordered_schemas()
        separate_types = self.config.separate_types_file
        prefix = self.prefix_template.render(
            command_comment=self._command_comment(),
            stats=result.stats if self.config.show_stats else None,
            type_imports=self._type_imports(schemas) if separate_types else [],
            types_import_path=self.config.types_import_path,
        )
        blocks = [
            self.schema_template.render(schema=schema, with_type=not separate_types).strip("\n")
            for schema in schemas
        ]
        return prefix.rstrip("\n") + "\n\n" + "\n\n".join(blocks) + "\n"

    def generate_string(self) -> str:
        """
        Generate the schema module as a string.

        Returns:
            TypeScript source code
        """
        return self.render(self.generate_result())

    def generate(self, output_path: str | Path) -> GenerationResult:
        """
        Generate the schema module and write it atomically.

        Args:
            output_path: Target file

        Returns:
            The generation result
        """
        result = self.generate_result()
        content = self.render(result)
        AtomicWriter().write(Path(output_path), content)
        logger.info("Wrote %d schemas to %s", len(result.schemas), output_path)
        return result


def generate_zod_schemas(spec: dict[str, Any], config: GeneratorConfig | None = None) -> str:
    """Convenience wrapper: generate the module text for a parsed document."""
    return OpenApiGenerator(spec, config).generate_string()
