"""
Saga execution with automatic rollback.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from kungfu import Result, Ok, Error

from orderflow._types import CompensatorWithValue
from orderflow.log import get_logger
from orderflow.saga._types import (
    SagaStep,
    SagaResult,
    SagaError,
    SagaExpr,
    StepCrashed,
    Then,
)

logger = get_logger("saga")

# ═══════════════════════════════════════════════════════════════════════════════
# Recorded Compensator
# ═══════════════════════════════════════════════════════════════════════════════

type RecordedCompensator[T] = tuple[str, T, CompensatorWithValue[T]]


@dataclass(slots=True)
class _Progress:
    compensators: list[RecordedCompensator[Any]] = field(default_factory=list)
    completed: list[str] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════════
# run_step() — Execute single step
# ═══════════════════════════════════════════════════════════════════════════════


async def run_step[T, E](
    step: SagaStep[T, E],
    progress: _Progress,
) -> Result[T, E | StepCrashed]:
    """Execute single step, recording compensator on success."""
    try:
        result = await step.action
    except Exception as exc:
        logger.exception("saga step %s raised", step.name)
        return Error(StepCrashed(step.name, exc))

    match result:
        case Ok(value):
            logger.debug("saga step %s ok", step.name)
            progress.completed.append(step.name)
            if step.compensate is not None:
                progress.compensators.append((step.name, value, step.compensate))
            return Ok(value)
        case Error(e):
            logger.debug("saga step %s failed: %r", step.name, e)
            return Error(e)


# ═══════════════════════════════════════════════════════════════════════════════
# run_compensators() — Rollback
# ═══════════════════════════════════════════════════════════════════════════════


async def run_compensators(
    compensators: list[RecordedCompensator[Any]],
) -> tuple[int, int]:
    """Run compensators in reverse. Returns (run, failed)."""
    comp_run = 0
    comp_failed = 0

    for name, value, comp in reversed(compensators):
        logger.warning("compensating saga step %s", name)
        try:
            await comp(value)
            comp_run += 1
        except Exception as exc:
            logger.error("compensation for saga step %s failed: %s", name, exc)
            comp_failed += 1

    return comp_run, comp_failed


# ═══════════════════════════════════════════════════════════════════════════════
# Chain walk
# ═══════════════════════════════════════════════════════════════════════════════


async def _run_expr(
    expr: SagaExpr[Any, Any],
    progress: _Progress,
) -> Result[Any, tuple[str, Any]]:
    match expr:
        case SagaStep():
            match await run_step(expr, progress):
                case Ok(value):
                    return Ok(value)
                case Error(e):
                    return Error((expr.name, e))
        case Then(inner, f):
            match await _run_expr(inner, progress):
                case Ok(value):
                    return await _run_expr(f(value), progress)
                case Error(failure):
                    return Error(failure)


# ═══════════════════════════════════════════════════════════════════════════════
# run() — Execute Saga
# ═══════════════════════════════════════════════════════════════════════════════


async def run[T, E](
    saga: SagaExpr[T, E],
) -> Result[SagaResult[T], SagaError[E]]:
    """
    Execute a step or a `.then` chain with automatic rollback on failure.

    On success: returns SagaResult with value and metadata.
    On failure: runs recorded compensators in reverse, returns SagaError.
    The failing step's own compensator is never run.

    Example:
        from orderflow import saga as S

        result = await S.run(
            S.step("a", action_a, undo_a)
            .then(lambda a: S.step("b", action_b(a), undo_b))
            .then(lambda b: S.step("c", action_c(b)))
        )

        match result:
            case Ok(r):
                print(f"Success: {r.value}")
            case Error(e):
                print(f"Failed at {e.failed_step}, rolled back: {e.rollback_complete}")
    """
    progress = _Progress()

    match await _run_expr(saga, progress):
        case Ok(value):
            return Ok(SagaResult(
                value=value,
                steps_executed=len(progress.completed),
                compensators_recorded=len(progress.compensators),
                completed=tuple(progress.completed),
            ))

        case Error((failed_step, error)):
            comp_run, comp_failed = await run_compensators(progress.compensators)

            return Error(SagaError(
                error=error,
                step_failed=len(progress.completed) + 1,
                failed_step=failed_step,
                completed=tuple(progress.completed),
                compensators_run=comp_run,
                compensators_failed=comp_failed,
                rollback_complete=comp_failed == 0,
            ))


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("run", "run_step", "run_compensators")
