"""
Plugin authoring model.

A plugin body is an async generator function receiving the task's
PluginContext. Every `yield` ends the current phase; the yielded value is the
phase to resume at (None for the next one):

    async def plugin(ctx):
        ctx.validate_config()
        yield Phase.GENERATE
        ...

Plugins may instead subclass CodegenPlugin and implement per phase hooks.
"""

from __future__ import annotations

import inspect
from collections.abc import AsyncIterator, Callable
from types import ModuleType
from typing import Any

from ..errors import PluginNotFoundError
from .context import PluginContext
from .phases import Phase

PluginBody = Callable[[PluginContext], AsyncIterator["Phase | None"]]

# Hook name per phase, in phase order
PHASE_HOOKS: tuple[tuple[Phase, str], ...] = (
    (Phase.SETUP, "setup"),
    (Phase.VALIDATE_CONFIG, "validate_config"),
    (Phase.LOAD_INPUT, "load_input"),
    (Phase.GENERATE, "generate"),
    (Phase.EMIT, "emit"),
    (Phase.CLEANUP, "cleanup"),
)


class CodegenPlugin:
    """
    Base class for hook based plugins.

    Subclasses implement any of `setup`, `load_input`, `generate`, `emit` and
    `cleanup` (each called with the PluginContext, sync or async). Phases
    without a hook are skipped.

    `validate_config` is always run; it validates the merged config with
    `config_class.from_dict` when a config class is set.
    """

    config_class: Any = None

    def validate_config(self, ctx: PluginContext) -> None:
        ctx.validate_config(self.config_class)


def _hooks(plugin: Any) -> list[tuple[Phase, Callable]]:
    hooks = []
    for phase, hook_name in PHASE_HOOKS:
        hook = getattr(plugin, hook_name, None)
        if callable(hook):
            hooks.append((phase, hook))
    return hooks


async def run_plugin_phases(plugin: Any, ctx: PluginContext) -> AsyncIterator[Phase | None]:
    """Drive a hook based plugin, skipping straight to each implemented hook."""
    for phase, hook in _hooks(plugin):
        if ctx.phase < phase:
            yield phase
        result = hook(ctx)
        if inspect.isawaitable(result):
            await result


def as_plugin_body(value: Any) -> PluginBody:
    """
    Turn a loaded plugin value into a plugin body.

    Accepts an async generator function, a CodegenPlugin subclass or instance
    (or any object with phase hooks), or a module exposing `plugin`.

    Raises:
        PluginNotFoundError: If the value is not a plugin
    """
    if inspect.isasyncgenfunction(value):
        return value

    if isinstance(value, ModuleType):
        plugin = getattr(value, "plugin", None)
        if plugin is None:
            raise PluginNotFoundError(f"Module {value.__name__} does not expose a plugin")
        return as_plugin_body(plugin)

    if inspect.isclass(value):
        value = value()

    if not _hooks(value):
        raise PluginNotFoundError(f"{value!r} is not a plugin")

    plugin = value

    def body(ctx: PluginContext) -> AsyncIterator[Phase | None]:
        return run_plugin_phases(plugin, ctx)

    return body
