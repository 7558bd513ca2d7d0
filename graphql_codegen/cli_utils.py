"""
CLI utilities for command line reconstruction and failure reporting.
"""

from pathlib import Path

import click

from .pipeline.scheduler import PhaseFailure

COMMAND_NAME = "graphql_codegen"


def reconstruct_command_line(click_command: click.Command) -> str:
    """
    Reconstruct command line from current Click context using introspection.

    Args:
        click_command: Click command object for introspection

    Returns:
        Reconstructed command line string
    """
    try:
        ctx = click.get_current_context()
        cli_args = ctx.params
    except RuntimeError:
        # No active context
        return COMMAND_NAME

    cmd_parts = [COMMAND_NAME]

    for param in click_command.params:
        value = cli_args.get(param.name)
        if not value or not isinstance(param, click.Option):
            continue
        if value == param.default:
            continue

        flag = param.opts[0] if param.opts else f"--{param.name}"
        if param.is_flag:
            cmd_parts.append(flag)
            continue

        # File paths are shown by name only
        if isinstance(value, (str, Path)):
            path_obj = Path(str(value))
            formatted_value = path_obj.name if path_obj.exists() else str(value)
        else:
            formatted_value = str(value)
        cmd_parts.extend([flag, formatted_value])

    return " ".join(cmd_parts)


def format_failure(failure: PhaseFailure) -> str:
    """One line report of a failed task: `<task> failed during <phase>: <error>`."""
    message = str(failure.error) or type(failure.error).__name__
    return f"{failure.task_name} failed during {failure.phase.label}: {message}"
