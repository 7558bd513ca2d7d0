"""
Plugin lifecycle phases.

Phases are totally ordered. The scheduler iterates PHASE_SEQUENCE once per
run; DONE and FAILED are absorbing states and are never iterated.
"""

from __future__ import annotations

from enum import IntEnum

from ..errors import PhaseOrderError


class Phase(IntEnum):
    """A stage of the plugin lifecycle."""

    SETUP = 0
    VALIDATE_CONFIG = 1
    LOAD_INPUT = 2
    GENERATE = 3
    EMIT = 4
    CLEANUP = 5
    DONE = 6
    FAILED = 7

    @property
    def label(self) -> str:
        """Human readable name, e.g. "validate-config"."""
        return self.name.lower().replace("_", "-")

    @property
    def is_terminal(self) -> bool:
        return self in (Phase.DONE, Phase.FAILED)

    def next(self) -> Phase:
        """Return the phase immediately following this one."""
        if self.is_terminal:
            return self
        return Phase(self + 1)


PHASE_SEQUENCE: tuple[Phase, ...] = (
    Phase.SETUP,
    Phase.VALIDATE_CONFIG,
    Phase.LOAD_INPUT,
    Phase.GENERATE,
    Phase.EMIT,
    Phase.CLEANUP,
)


def resolve_next_phase(current: Phase, requested: Phase | None) -> Phase:
    """
    Compute the phase a task resumes at after being invoked at `current`.

    An explicit request always wins; without one the task advances by
    exactly one phase.

    Args:
        current: The phase the task was just invoked at
        requested: The phase the task yielded, if any

    Returns:
        The next phase to resume the task at

    Raises:
        PhaseOrderError: If the request is not strictly ahead of `current`
    """
    if requested is None:
        return current.next()

    if not isinstance(requested, Phase):
        raise PhaseOrderError(f"Invalid phase request {requested!r} during {current.label}, expected a Phase")

    if requested is Phase.FAILED:
        raise PhaseOrderError(f"A task cannot request the {requested.label} phase")

    if requested <= current:
        raise PhaseOrderError(
            f"Cannot resume at {requested.label} from {current.label}, phases only move forward"
        )

    return requested
