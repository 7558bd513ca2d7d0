import asyncio
import logging
import os

import click

from .cli_utils import format_failure, reconstruct_command_line
from .errors import ConfigError, PluginRunError
from .pipeline import load_config, run_codegen

logger = logging.getLogger(__name__)


@click.command()
@click.option("--config", "-c", default=None, type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@click.option("--cwd", default=None, type=click.Path(exists=True, file_okay=False, resolve_path=True))
@click.option("--debug", is_flag=True, default=False, help="Enable debug logging")
def graphql_codegen(config, cwd, debug):
    """Run every plugin of every output target of the configuration file."""
    if cwd is not None:
        os.chdir(cwd)

    try:
        codegen_config = load_config(config)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from e

    debug = debug or codegen_config.debug
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logger.debug("Running %s", reconstruct_command_line(graphql_codegen))

    try:
        asyncio.run(run_codegen(codegen_config))
    except PluginRunError as e:
        for failure in e.failures:
            click.echo(format_failure(failure), err=True)
        if not debug:
            click.echo(f"Rerun with `{reconstruct_command_line(graphql_codegen)} --debug` for tracebacks", err=True)
        raise SystemExit(1) from e
