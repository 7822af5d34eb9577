"""
Recording the invoking command line in the generated file header.
"""

from pathlib import Path

import click

PROGRAM_NAME = "openapi_to_zod"


def format_parameter_value(value) -> str:
    """Render one parameter value; existing files are shown by name only."""
    if isinstance(value, (str, Path)):
        path = Path(str(value))
        return path.name if path.exists() else str(value)
    return str(value)


def _option_tokens(option: click.Option, value) -> list[str]:
    flag = option.opts[0] if option.opts else f"--{option.name}"
    if option.is_flag:
        return [flag]
    if option.multiple:
        # Repeatable options are written once per value
        tokens = []
        for item in value:
            tokens.extend([flag, format_parameter_value(item)])
        return tokens
    return [flag, format_parameter_value(value)]


def reconstruct_command_line(click_command: click.Command) -> str:
    """
    Rebuild the `openapi_to_zod ...` invocation from the active click context.

    Options left at their default are omitted. Outside a click context
    (library use) only the program name is returned.

    Args:
        click_command: The command whose parameters are listed

    Returns:
        The command line, e.g. `openapi_to_zod spec.yaml out.ts --mode strict`
    """
    try:
        params = click.get_current_context().params
    except RuntimeError:
        return PROGRAM_NAME

    arguments: list[str] = []
    options: list[str] = []
    for param in click_command.params:
        value = params.get(param.name)
        if not value:
            continue
        if isinstance(param, click.Argument):
            arguments.append(format_parameter_value(value))
        elif isinstance(param, click.Option) and value != param.default:
            options.extend(_option_tokens(param, value))

    return " ".join([PROGRAM_NAME] + arguments + options)
