"""
Order views — read-side graph.

    OrdersQuery ──► StoredOrdersNode ──┬──► MealsNode ─────┐
                                       └──► PaymentsNode ──┴──► OrderViewsNode

Meals and payments load in parallel. Nodes hold Results instead of raising,
so a store failure surfaces as Error at the end of the graph.
"""

from dataclasses import dataclass

from kungfu import Result, Ok, Error

from orderflow import graph as G
from orderflow.catalog import Catalog
from orderflow.domain import Meal, Order, OrderItemView, OrderView, PaymentRecord
from orderflow.errors import StoreUnavailable
from orderflow.log import get_logger
from orderflow.store import OrderStore, PaymentStore

logger = get_logger("views")


@dataclass(frozen=True, slots=True)
class OrdersQuery:
    """Exactly one of order_id / user_id is set."""

    order_id: int | None = None
    user_id: int | None = None


@G.node
class StoredOrdersNode:
    def __init__(self, result: Result[list[Order], StoreUnavailable]) -> None:
        self.result = result

    @classmethod
    async def __compose__(cls, query: OrdersQuery, orders: OrderStore) -> "StoredOrdersNode":
        if query.order_id is not None:
            match await orders.get_order(query.order_id):
                case Ok(order):
                    return cls(Ok([] if order is None else [order]))
                case Error(e):
                    return cls(Error(e))
        if query.user_id is not None:
            return cls(await orders.get_orders_for_user(query.user_id))
        return cls(Ok([]))


@G.node
class MealsNode:
    """Display data is best effort: a catalog failure leaves names and prices empty."""

    def __init__(self, meals: dict[int, Meal]) -> None:
        self.meals = meals

    @classmethod
    async def __compose__(cls, stored: StoredOrdersNode, catalog: Catalog) -> "MealsNode":
        match stored.result:
            case Ok(orders):
                meal_ids = {item.meal_id for order in orders for item in order.items}
            case Error(_):
                return cls({})
        if not meal_ids:
            return cls({})
        try:
            return cls(await catalog.get_meals(meal_ids))
        except Exception as e:
            logger.warning("catalog lookup failed, serving orders without meal data: %s", e)
            return cls({})


@G.node
class PaymentsNode:
    def __init__(self, result: Result[dict[int, list[PaymentRecord]], StoreUnavailable]) -> None:
        self.result = result

    @classmethod
    async def __compose__(cls, stored: StoredOrdersNode, payments: PaymentStore) -> "PaymentsNode":
        match stored.result:
            case Ok(orders):
                return cls(await payments.for_orders(o.order_id for o in orders))
            case Error(_):
                return cls(Ok({}))


@G.node
class OrderViewsNode:
    def __init__(self, result: Result[list[OrderView], StoreUnavailable]) -> None:
        self.result = result

    @classmethod
    def __compose__(
        cls,
        stored: StoredOrdersNode,
        meals: MealsNode,
        payments: PaymentsNode,
    ) -> "OrderViewsNode":
        match stored.result, payments.result:
            case Error(e), _:
                return cls(Error(e))
            case _, Error(e):
                return cls(Error(e))
            case Ok(orders), Ok(by_order):
                return cls(Ok([
                    _view(order, meals.meals, by_order.get(order.order_id, []))
                    for order in orders
                ]))
        return cls(Ok([]))


def _view(order: Order, meals: dict[int, Meal], payments: list[PaymentRecord]) -> OrderView:
    items = []
    for item in order.items:
        meal = meals.get(item.meal_id)
        items.append(OrderItemView(
            meal_id=item.meal_id,
            quantity=item.quantity,
            meal_name=meal.name if meal is not None else None,
            unit_price=meal.price if meal is not None else None,
        ))
    return OrderView(
        order_id=order.order_id,
        user_id=order.user_id,
        total_price=order.total_price,
        status=order.status,
        items=tuple(items),
        payments=tuple(payments),
        shipping_address=order.shipping_address,
        created_at=order.created_at,
    )


order_views = G.graph(OrderViewsNode)


async def load_views(
    query: OrdersQuery,
    orders: OrderStore,
    payments: PaymentStore,
    catalog: Catalog,
) -> Result[list[OrderView], StoreUnavailable]:
    node = await (
        order_views.run()
        .inject(query)
        .inject_as(OrderStore, orders)
        .inject_as(PaymentStore, payments)
        .inject_as(Catalog, catalog)
    )
    return node.result


__all__ = (
    "OrdersQuery",
    "StoredOrdersNode",
    "MealsNode",
    "PaymentsNode",
    "OrderViewsNode",
    "order_views",
    "load_views",
)
