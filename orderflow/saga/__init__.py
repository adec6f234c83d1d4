"""
Saga — multi-step writes with compensation.

    from orderflow import saga as S

    saga = (
        S.step("first", action, compensate)
        .then(lambda v: S.step("second", action2(v), compensate2))
    )
    result = await S.run(saga)
"""

from __future__ import annotations

from orderflow.saga._types import (
    SagaStep,
    SagaResult,
    SagaError,
    SagaExpr,
    StepCrashed,
    Then,
)
from orderflow.saga._step import step
from orderflow.saga._run import run, run_compensators

__all__ = (
    "SagaStep",
    "SagaResult",
    "SagaError",
    "SagaExpr",
    "StepCrashed",
    "Then",
    "step",
    "run",
    "run_compensators",
)
