"""
Graph — typed composition over nodnod.

    from orderflow import graph as G

    @G.node
    class LoadOrder:
        @classmethod
        async def __compose__(cls, query: OrdersQuery, orders: OrderStore) -> "LoadOrder":
            return cls(await orders.get_order(query.order_id))

    pipeline = G.graph(LoadOrder)
    node = await pipeline.run().inject(query).inject(orders)
"""

from nodnod import scalar_node as node

from orderflow.graph._compiled import (
    CompiledRun,
    Compiled,
    graph,
)

__all__ = (
    "node",
    "graph",
    "Compiled",
    "CompiledRun",
)
