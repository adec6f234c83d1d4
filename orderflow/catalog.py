"""
Catalog — meal lookups for display fields and total verification.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol

from orderflow.domain import Meal


class Catalog(Protocol):
    async def get_meals(self, meal_ids: Iterable[int]) -> dict[int, Meal]:
        """Known meals among `meal_ids`. Unknown ids are absent from the result."""
        ...


class MemoryCatalog:
    """In-process catalog, seeded at startup."""

    def __init__(self, meals: Iterable[Meal] = ()) -> None:
        self._meals: dict[int, Meal] = {m.meal_id: m for m in meals}

    @classmethod
    def from_mapping(cls, meals: Mapping[int, Meal]) -> MemoryCatalog:
        return cls(meals.values())

    def add(self, meal: Meal) -> None:
        self._meals[meal.meal_id] = meal

    async def get_meals(self, meal_ids: Iterable[int]) -> dict[int, Meal]:
        return {i: self._meals[i] for i in set(meal_ids) if i in self._meals}


__all__ = ("Catalog", "MemoryCatalog")
