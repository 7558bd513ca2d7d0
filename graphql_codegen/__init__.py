"""GraphQL Code Generator

A Python package for generating code from GraphQL schemas.
Plugins run through a phase scheduler; built-in plugins print the merged
schema, generate Python types and resolver protocols, and generate
re-export modules for a directory.
"""

__version__ = "0.1.0"

from .errors import CodegenError, PluginRunError
from .pipeline import (
    CodegenConfig,
    CodegenPlugin,
    Phase,
    PhaseFailure,
    PhaseScheduler,
    PluginContext,
    PluginTask,
    load_config,
    run_codegen,
)

__all__ = [
    "CodegenConfig",
    "CodegenError",
    "CodegenPlugin",
    "Phase",
    "PhaseFailure",
    "PhaseScheduler",
    "PluginContext",
    "PluginRunError",
    "PluginTask",
    "load_config",
    "run_codegen",
]
