"""
Compiled graph — build the agent once, run it per request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, cast
from collections.abc import Callable, Coroutine

from nodnod import Scope, Value, EventLoopAgent, Node

type Injection = tuple[type[Any], Any]
type AgentRun = Callable[[Scope, dict[type[Any], Scope]], Coroutine[Any, Any, None]]


# ═══════════════════════════════════════════════════════════════════════════════
# CompiledRun — one execution of a compiled graph
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True)
class CompiledRun[T]:
    _target: type[T]
    _agent: EventLoopAgent
    _injections: tuple[Injection, ...]
    _detail: str

    def inject(self, value: object) -> CompiledRun[T]:
        """Inject a value under its runtime type."""
        return self.inject_as(cast(type[Any], type(value)), value)

    def inject_as[V](self, typ: type[V], value: V) -> CompiledRun[T]:
        """Inject under an explicit type, e.g. a Protocol or a base class."""
        injection: Injection = (typ, value)
        return CompiledRun(
            _target=self._target,
            _agent=self._agent,
            _injections=(*self._injections, injection),
            _detail=self._detail,
        )

    def __await__(self) -> Any:
        return self._execute().__await__()

    async def _execute(self) -> T:
        scope = Scope(detail=self._detail)
        async with scope:
            for typ, value in self._injections:
                scope.push(Value(typ, value))

            await cast(AgentRun, getattr(self._agent, "run"))(scope, {})

            found = scope.get(self._target)
            if found is None:
                raise KeyError(f"{self._target.__name__} was not produced by the graph")
            return cast(T, found.value)


# ═══════════════════════════════════════════════════════════════════════════════
# Compiled — pre-built agent for a target node
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class Compiled[T]:
    """
    Pre-compiled graph for repeated execution.

    Example:
        views = graph(OrderViewsNode)
        node = await views.run().inject(query).inject_as(Catalog, catalog)
    """

    _target: type[T]
    _agent: EventLoopAgent

    def run(self) -> CompiledRun[T]:
        return CompiledRun(
            _target=self._target,
            _agent=self._agent,
            _injections=(),
            _detail=self._target.__name__,
        )


def graph[T](target: type[T]) -> Compiled[T]:
    """Discover every node `target` depends on and build the agent."""
    all_nodes: set[type[Node[Any, Any]]] = {cast(type[Node[Any, Any]], target)}
    agent = EventLoopAgent.build(all_nodes)
    return Compiled(_target=target, _agent=agent)


__all__ = ("CompiledRun", "Compiled", "graph")
