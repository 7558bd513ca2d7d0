"""
Pipeline - phase scheduled GraphQL code generation.

Every (output target, plugin) pair runs as one task through a fixed
sequence of phases:

1. Setup: load the plugin
2. Validate config: merge and validate the plugin configuration
3. Load input: enumerate and parse the schema files
4. Generate: visit the schema and build the output model
5. Emit: write the serialized model to the output streams
6. Cleanup: release held resources

All tasks at the same phase run concurrently; no task starts a phase
before every task of the previous phase has settled.
"""

from __future__ import annotations

from .config import CodegenConfig, GenerateOptions, OutputTarget, load_config
from .context import PluginContext
from .filesystem import Filesystem, compile_output_path
from .loader import ModulePath, load_module_value, parse_module_path
from .phases import PHASE_SEQUENCE, Phase, resolve_next_phase
from .plugin import CodegenPlugin, as_plugin_body, run_plugin_phases
from .scheduler import PhaseFailure, PhaseScheduler, PluginTask, StepResult, build_tasks, run_codegen

__all__ = [
    "CodegenConfig",
    "CodegenPlugin",
    "Filesystem",
    "GenerateOptions",
    "ModulePath",
    "OutputTarget",
    "PHASE_SEQUENCE",
    "Phase",
    "PhaseFailure",
    "PhaseScheduler",
    "PluginContext",
    "PluginTask",
    "StepResult",
    "as_plugin_body",
    "build_tasks",
    "compile_output_path",
    "load_config",
    "load_module_value",
    "parse_module_path",
    "resolve_next_phase",
    "run_codegen",
    "run_plugin_phases",
]
