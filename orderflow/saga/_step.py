"""
Saga step creation.
"""

from __future__ import annotations

from orderflow._types import Lazy, CompensatorWithValue
from orderflow.saga._types import SagaStep

# ═══════════════════════════════════════════════════════════════════════════════
# step() — Primary Constructor
# ═══════════════════════════════════════════════════════════════════════════════


def step[T, E](
    name: str,
    action: Lazy[T, E],
    compensate: CompensatorWithValue[T] | None = None,
) -> SagaStep[T, E]:
    """
    Create a named, optionally compensated saga step.

    Args:
        name: Step name, reported in SagaError and logs
        action: The operation to perform (LazyCoroResult)
        compensate: Undo for the action; raises if it cannot undo

    Example:
        from orderflow import saga as S
        from combinators import lift as L

        persist = S.step(
            "persist-order",
            action=L.catching_async(
                lambda: api.create(order),
                on_error=lambda e: StoreUnavailable(str(e), e),
            ),
            compensate=lambda order_id: api.cancel(order_id),
        )

        flow = persist.then(lambda order_id: S.step(
            "persist-items",
            action=LazyCoroResult(lambda: orders.add_items(order_id, items)),
        ))
    """
    return SagaStep(action=action, compensate=compensate, name=name)


__all__ = ("step",)
