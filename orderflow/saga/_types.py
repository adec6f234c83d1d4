"""
Saga types — core data structures.
"""

from __future__ import annotations

from dataclasses import dataclass
from collections.abc import Callable

from orderflow._types import Lazy, CompensatorWithValue

# ═══════════════════════════════════════════════════════════════════════════════
# SagaStep — Single Step with Compensation
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SagaStep[T, E]:
    """
    A single named saga step: action + compensator.

    When the action succeeds, its compensator is recorded.
    If a later step fails, recorded compensators run in reverse.
    """

    action: Lazy[T, E]
    compensate: CompensatorWithValue[T] | None
    name: str

    def then[U, E2](
        self,
        f: Callable[[T], SagaStep[U, E2]],
    ) -> Then[T, U, E, E2]:
        """Chain another saga step after this one."""
        return Then(self, f)


# ═══════════════════════════════════════════════════════════════════════════════
# Saga AST — Sequential Composition
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Then[T, U, E, E2]:
    """Sequential composition (monadic bind). Nests to any depth."""

    inner: SagaStep[T, E] | Then[object, T, object, E]
    f: Callable[[T], SagaStep[U, E2]]

    def then[V, E3](
        self,
        g: Callable[[U], SagaStep[V, E3]],
    ) -> Then[U, V, E | E2, E3]:
        return Then(self, g)


type SagaExpr[T, E] = SagaStep[T, E] | Then[object, T, object, E]


# ═══════════════════════════════════════════════════════════════════════════════
# Result Types
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class StepCrashed:
    """A step action raised instead of returning Error."""

    step: str
    cause: Exception

    @property
    def message(self) -> str:
        return f"step {self.step} crashed"


@dataclass(frozen=True, slots=True)
class SagaResult[T]:
    """Successful saga result with metadata."""

    value: T
    steps_executed: int
    compensators_recorded: int
    completed: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SagaError[E]:
    """
    Saga error with rollback status.

    completed: names of the steps that succeeded before `failed_step`.
    rollback_complete is False if any compensator raised.
    """

    error: E | StepCrashed
    step_failed: int
    failed_step: str
    completed: tuple[str, ...]
    compensators_run: int
    compensators_failed: int
    rollback_complete: bool


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "SagaStep",
    "Then",
    "SagaExpr",
    "StepCrashed",
    "SagaResult",
    "SagaError",
)
