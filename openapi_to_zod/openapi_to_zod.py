import logging

import click

from .config import EmptyObjectBehavior, EnumType, GeneratorConfig, ObjectMode, SchemaType
from .errors import OpenApiToZodError
from .generator import OpenApiGenerator
from .loader import load_config_file, load_spec


def _choices(enum_class) -> click.Choice:
    return click.Choice([member.value for member in enum_class])


@click.command()
@click.option("--config", "-c", default=None, type=click.Path(exists=True, resolve_path=True))
@click.option("--mode", "-m", default=None, type=_choices(ObjectMode), help="Object strictness")
@click.option("--schema-type", default=None, type=_choices(SchemaType), help="readOnly/writeOnly filtering")
@click.option("--default-nullable", is_flag=True, default=False, help="Property values are nullable by default")
@click.option("--empty-object-behavior", default=None, type=_choices(EmptyObjectBehavior))
@click.option("--enum-type", default=None, type=_choices(EnumType), help="Emit top-level enums as z.enum or TS enums")
@click.option("--prefix", default=None, type=str, help="Prefix of generated schema constants")
@click.option("--suffix", default=None, type=str, help="Suffix of generated schema constants")
@click.option(
    "--strip-schema-prefix",
    multiple=True,
    help="Literal or glob prefix stripped from schema names (repeatable)",
)
@click.option("--use-describe", is_flag=True, default=False, help="Add .describe() calls for descriptions")
@click.option("--no-descriptions", is_flag=True, default=False, help="Omit JSDoc descriptions")
@click.option("--separate-types-file", is_flag=True, default=False, help="Import types from a separate file")
@click.option("--stats", is_flag=True, default=False, help="Add a generation statistics comment")
@click.option("--verbose", "-v", is_flag=True, default=False)
@click.argument("path", default=None, type=click.Path(resolve_path=True, allow_dash=True))
@click.argument("output", default=None, type=click.Path(resolve_path=True))
def openapi_to_zod(
    config,
    mode,
    schema_type,
    default_nullable,
    empty_object_behavior,
    enum_type,
    prefix,
    suffix,
    strip_schema_prefix,
    use_describe,
    no_descriptions,
    separate_types_file,
    stats,
    verbose,
    path,
    output,
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        spec = load_spec(path)
        config_values = load_config_file(config) if config is not None else {}

        # CLI flags override config file values
        overrides = {
            "mode": mode,
            "schema_type": schema_type,
            "empty_object_behavior": empty_object_behavior,
            "enum_type": enum_type,
            "prefix": prefix,
            "suffix": suffix,
            "strip_schema_prefix": list(strip_schema_prefix) or None,
        }
        config_values.update({key: value for key, value in overrides.items() if value is not None})
        if default_nullable:
            config_values["default_nullable"] = True
        if use_describe:
            config_values["use_describe"] = True
        if no_descriptions:
            config_values["include_descriptions"] = False
        if separate_types_file:
            config_values["separate_types_file"] = True
        if stats:
            config_values["show_stats"] = True

        generator = OpenApiGenerator(spec, GeneratorConfig.from_dict(config_values))
        result = generator.generate(output)
    except OpenApiToZodError as exc:
        raise click.ClickException(str(exc)) from exc

    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)
    click.echo(f"Generated {len(result.schemas)} schemas in {output}")
