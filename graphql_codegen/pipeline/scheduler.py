"""
Phase scheduler.

Drives every plugin task through the fixed phase sequence. All tasks
resuming at a phase are stepped concurrently and the scheduler waits for
every one of them to settle before moving on to the next phase.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple

from ..errors import PluginRunError
from .config import CodegenConfig, OutputTarget
from .context import PluginContext
from .filesystem import Filesystem
from .loader import load_module_value
from .phases import PHASE_SEQUENCE, Phase, resolve_next_phase
from .plugin import as_plugin_body

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhaseFailure:
    """A task that raised while being stepped at `phase`."""

    task_name: str
    phase: Phase
    error: BaseException

    def __str__(self) -> str:
        return f"{self.task_name} failed during {self.phase.label}: {self.error}"


class StepResult(NamedTuple):
    done: bool
    requested_phase: Phase | None = None


class PluginTask:
    """A plugin body bound to its context, resumed once per phase step."""

    def __init__(self, name: str, body: Callable[[PluginContext], AsyncIterator[Phase | None]], context: PluginContext):
        self.name = name
        self.body = body
        self.context = context
        self.resume_on = Phase.SETUP
        self.invoked_phases: list[Phase] = []
        self._generator: AsyncIterator[Phase | None] | None = None

    def __repr__(self) -> str:
        return f"PluginTask({self.name!r}, resume_on={self.resume_on.label})"

    async def step(self, phase: Phase) -> StepResult:
        """
        Resume the body until its next phase boundary.

        Returns:
            done=True when the body returned, otherwise the phase it yielded
        """
        self.invoked_phases.append(phase)
        self.context.phase = phase

        if self._generator is None:
            generator = self.body(self.context)
            if not hasattr(generator, "__anext__"):
                raise TypeError(f"Plugin body of {self.name} must be an async generator function")
            self._generator = generator

        try:
            requested = await anext(self._generator)
        except StopAsyncIteration:
            return StepResult(done=True)
        return StepResult(done=False, requested_phase=requested)

    async def close(self) -> None:
        """Close a suspended body, running its pending finally blocks."""
        generator, self._generator = self._generator, None
        if generator is not None and hasattr(generator, "aclose"):
            await generator.aclose()


class PhaseScheduler:
    """Runs a set of plugin tasks through PHASE_SEQUENCE."""

    def __init__(self, tasks: Iterable[PluginTask]):
        """
        Raises:
            ValueError: If two tasks share a name
        """
        self.tasks = list(tasks)
        self.failures: list[PhaseFailure] = []

        seen: set[str] = set()
        for task in self.tasks:
            if task.name in seen:
                raise ValueError(f"Duplicate task name: {task.name}")
            seen.add(task.name)

    async def run(self) -> None:
        """
        Run every phase once.

        Raises:
            PluginRunError: With every failure, once all phases have run
        """
        for phase in PHASE_SEQUENCE:
            eligible = [task for task in self.tasks if task.resume_on is phase]
            if not eligible:
                continue

            logger.debug("Starting %s for %d task(s)", phase.label, len(eligible))
            await asyncio.gather(*(self._step(task, phase) for task in eligible))

        for task in self.tasks:
            if not task.resume_on.is_terminal:
                logger.debug("Closing %s, still suspended after %s", task.name, Phase.CLEANUP.label)
                await self._finish(task, Phase.CLEANUP)

        self._commit_outputs()

        if self.failures:
            raise PluginRunError(list(self.failures))

    async def _step(self, task: PluginTask, phase: Phase) -> None:
        try:
            result = await task.step(phase)
            if result.done:
                next_phase = Phase.DONE
            else:
                next_phase = resolve_next_phase(phase, result.requested_phase)
        except Exception as e:
            self._fail(task, phase, e)
            return

        if next_phase is Phase.DONE:
            await self._finish(task, phase)
        else:
            task.resume_on = next_phase

    async def _finish(self, task: PluginTask, phase: Phase) -> None:
        try:
            await task.close()
        except Exception as e:
            self._fail(task, phase, e)
            return
        task.resume_on = Phase.DONE

    def _commit_outputs(self) -> None:
        """Release the streams of every finished task.

        Runs once after the last phase, so an output shared by several tasks
        holds the writes of all of them.
        """
        for task in self.tasks:
            if task.resume_on is not Phase.DONE:
                continue
            try:
                task.context.release()
            except OSError as e:
                self._fail(task, Phase.CLEANUP, e)

    def _fail(self, task: PluginTask, phase: Phase, error: Exception) -> None:
        logger.error("%s failed during %s: %s", task.name, phase.label, error)
        logger.debug("Traceback of %s", task.name, exc_info=error)
        task.resume_on = Phase.FAILED
        self.failures.append(PhaseFailure(task.name, phase, error))
        try:
            task.context.release(discard=True)
        except OSError as e:
            logger.error("Could not release outputs of %s: %s", task.name, e)


def plugin_task_name(target: OutputTarget, identifier: str) -> str:
    return f"{target.output}::{identifier}"


def _resolving_body(identifier: str) -> Callable[[PluginContext], AsyncIterator[Phase | None]]:
    """Body that loads the plugin on its first step, so load errors fail only this task."""

    async def body(ctx: PluginContext) -> AsyncIterator[Phase | None]:
        inner = as_plugin_body(load_module_value(identifier))(ctx)
        ctx.logger.debug("Loaded plugin %s", identifier)
        try:
            async for requested in inner:
                yield requested
        finally:
            await inner.aclose()

    return body


def build_tasks(config: CodegenConfig, filesystem: Filesystem) -> list[PluginTask]:
    """Create one task per (output target, plugin identifier)."""
    tasks = []
    for target in config.generates:
        for identifier, plugin_config in target.plugins.items():
            name = plugin_task_name(target, identifier)
            context = PluginContext(name, target, filesystem, config.config, plugin_config)
            tasks.append(PluginTask(name, _resolving_body(identifier), context))
    return tasks


async def run_codegen(config: CodegenConfig, root: str | Path | None = None) -> None:
    """
    Run every plugin of every output target.

    Args:
        config: The loaded configuration
        root: Directory paths are resolved against (defaults to the
            configuration's root, then the current directory)

    Raises:
        PluginRunError: If any task failed
    """
    filesystem = Filesystem(root if root is not None else config.root)
    tasks = build_tasks(config, filesystem)
    logger.info("Running %d plugin task(s) for %d output(s)", len(tasks), len(config.generates))
    await PhaseScheduler(tasks).run()
