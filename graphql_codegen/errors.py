"""
Error types raised by the code generator.

Every error raised inside a plugin phase is caught by the scheduler and
recorded as a PhaseFailure; PluginRunError carries the full list once all
phases have run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .pipeline.scheduler import PhaseFailure


class CodegenError(Exception):
    """Base class for all code generator errors."""


class ConfigError(CodegenError):
    """Raised when the configuration file is malformed."""


class ConfigNotFoundError(ConfigError):
    """Raised when no configuration file could be found."""


class PluginConfigError(CodegenError):
    """Raised by a plugin config validator when the plugin config is invalid."""


class PluginNotFoundError(CodegenError):
    """Raised when a plugin identifier does not resolve to a loadable value."""


class OutputPatternError(CodegenError, ValueError):
    """Raised for output patterns that cannot be templated from an input path."""


class PhaseError(CodegenError):
    """Raised when a phase-scoped operation is used outside of its phase."""


class PhaseOrderError(PhaseError):
    """Raised when a task requests to resume at a phase that is not ahead of it."""


class SchemaError(CodegenError):
    """Base class for GraphQL schema errors."""


class SchemaStructureError(SchemaError, TypeError):
    """Raised during traversal when the schema AST has an invalid shape."""


class DuplicateFieldError(SchemaStructureError):
    """Raised when two field definitions resolve to the same qualified name."""

    def __init__(self, qualified_name: str):
        super().__init__(f"Invalid type, duplicate field definition: {qualified_name}")
        self.qualified_name = qualified_name


class SchemaValidationError(SchemaError):
    """Raised when the merged schema fails GraphQL validation.

    All validation messages are joined into a single error so they can be
    reported in one pass.
    """

    def __init__(self, messages: list[str]):
        super().__init__("\n\n".join(messages))
        self.messages = messages


class PluginRunError(CodegenError):
    """Raised once all phases have run and at least one task failed."""

    def __init__(self, failures: list[PhaseFailure]):
        names = ", ".join(failure.task_name for failure in failures)
        super().__init__(f"{len(failures)} plugin task(s) failed: {names}")
        self.failures = failures
