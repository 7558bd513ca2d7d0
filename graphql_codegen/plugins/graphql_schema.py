"""
Print the merged schema as SDL.

Useful to publish one schema file assembled from many `.graphql` sources.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from graphql import print_schema

from ..pipeline.config import GenerateOptions
from ..pipeline.context import PluginContext
from ..pipeline.phases import Phase


async def plugin(ctx: PluginContext) -> AsyncIterator[Phase | None]:
    yield Phase.VALIDATE_CONFIG

    options = ctx.validate_config(GenerateOptions)
    yield

    context = await ctx.load_schema()
    yield Phase.EMIT

    header = "".join(f"# {line}".rstrip() + "\n" for line in options.header_comment.splitlines())
    if header:
        header += "\n"
    ctx.write_output(header + print_schema(context.schema) + "\n")
    ctx.logger.info("Printed schema from %d file(s)", len(ctx.input_files))
