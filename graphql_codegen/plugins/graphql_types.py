"""
Generate Python types from the schema.

Object, interface and input object types become dataclasses, enums become
`str` enums, unions become type aliases and the root operation types become
resolver protocols.
"""

from __future__ import annotations

from ..pipeline.analyzer import SchemaAnalyzer
from ..pipeline.backends import PythonBackend
from ..pipeline.config import GenerateOptions
from ..pipeline.context import PluginContext
from ..pipeline.plugin import CodegenPlugin
from ..pipeline.schema import SchemaContext


class GraphQLTypesPlugin(CodegenPlugin):
    config_class = GenerateOptions

    def __init__(self):
        self.schema_context: SchemaContext | None = None
        self.code = ""

    async def load_input(self, ctx: PluginContext) -> None:
        self.schema_context = await ctx.load_schema()

    def generate(self, ctx: PluginContext) -> None:
        options: GenerateOptions = ctx.config
        ir = SchemaAnalyzer(snake_case_fields=options.snake_case_fields).analyze(self.schema_context)
        self.code = PythonBackend(options).generate(ir)
        ctx.logger.info(
            "Generated %d classes, %d enums and %d unions", len(ir.classes), len(ir.enums), len(ir.unions)
        )

    def emit(self, ctx: PluginContext) -> None:
        ctx.write_output(self.code)


plugin = GraphQLTypesPlugin
