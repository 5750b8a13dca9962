"""Optimistic meal list for the selected day.

The displayed list is patched locally before a write completes and rolled
back if the write fails. Aggregated week summaries never use this strategy;
they are invalidated and refetched instead.
"""

from dataclasses import dataclass, field
from uuid import UUID

from food_log.domain.meals import Meal


@dataclass(frozen=True)
class PendingRemoval:
    """A locally removed meal and where it was."""

    index: int
    meal: Meal


@dataclass
class OptimisticMealList:
    """Meals shown for the selected day."""

    meals: list[Meal] = field(default_factory=list)

    def replace(self, meals: list[Meal]) -> None:
        """Replace the list with freshly fetched meals."""
        self.meals = list(meals)

    def snapshot(self) -> list[Meal]:
        return list(self.meals)

    def remove(self, meal_id: UUID) -> PendingRemoval | None:
        """Remove a meal now; return what is needed to undo it."""
        for index, meal in enumerate(self.meals):
            if meal.id == meal_id:
                del self.meals[index]
                return PendingRemoval(index=index, meal=meal)
        return None

    def restore(self, removal: PendingRemoval) -> None:
        """Put a removed meal back at its original position."""
        if 0 <= removal.index <= len(self.meals):
            self.meals.insert(removal.index, removal.meal)
        else:
            self.meals.append(removal.meal)
