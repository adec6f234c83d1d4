"""
orderflow — order creation with payment, as a compensating saga.

    from orderflow import saga as S    # Step / compensation runner
    from orderflow import graph as G   # Read-side composition

    wiring = await build(Settings.from_env())
    result = await wiring.service.create_with_payment(command)
"""

from orderflow import saga
from orderflow import graph
from orderflow._types import Lazy
from orderflow.config import Settings
from orderflow.domain import (
    Classification,
    CreateOrderCommand,
    OrderItem,
    OrderPlaced,
    OrderStatus,
    OrderView,
    PaymentMethod,
    PaymentRequest,
)
from orderflow.errors import CreateOrderFailure
from orderflow.orchestrator import OrderService
from orderflow.bootstrap import Wiring, build

__version__ = "0.1.0"

__all__ = (
    "saga",
    "graph",
    "Lazy",
    "Settings",
    "Classification",
    "CreateOrderCommand",
    "OrderItem",
    "OrderPlaced",
    "OrderStatus",
    "OrderView",
    "PaymentMethod",
    "PaymentRequest",
    "CreateOrderFailure",
    "OrderService",
    "Wiring",
    "build",
)
