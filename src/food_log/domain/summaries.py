"""Per-day nutrition summaries."""

from collections.abc import Iterable
from dataclasses import dataclass, fields
from datetime import date

from food_log.domain.meals import Meal
from food_log.domain.weeks import as_day


@dataclass(frozen=True)
class DailySummary:
    """Nutrition totals for one calendar day.

    Calories are kcal, everything else grams. A day without data is
    represented by ``DailySummary.empty(day)``, never by ``None``.
    """

    day: date
    meal_count: int
    total_calories: float
    total_protein_g: float
    total_carbs_g: float
    total_fat_g: float
    total_fiber_g: float
    total_sugar_g: float
    total_saturated_fat_g: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "day", as_day(self.day))
        for item in fields(self):
            if item.name == "day":
                continue
            if getattr(self, item.name) < 0:
                raise ValueError(f"{item.name} must be non-negative")

    @classmethod
    def empty(cls, day: date) -> "DailySummary":
        """Return the zero summary for a day."""
        return cls(
            day=day,
            meal_count=0,
            total_calories=0.0,
            total_protein_g=0.0,
            total_carbs_g=0.0,
            total_fat_g=0.0,
            total_fiber_g=0.0,
            total_sugar_g=0.0,
            total_saturated_fat_g=0.0,
        )

    @classmethod
    def from_meals(cls, day: date, meals: Iterable[Meal]) -> "DailySummary":
        """Sum the totals of the meals logged on a day."""
        items = list(meals)
        return cls(
            day=day,
            meal_count=len(items),
            total_calories=sum(meal.total_calories for meal in items),
            total_protein_g=sum(meal.total_protein_g for meal in items),
            total_carbs_g=sum(meal.total_carbs_g for meal in items),
            total_fat_g=sum(meal.total_fat_g for meal in items),
            total_fiber_g=sum(meal.total_fiber_g for meal in items),
            total_sugar_g=sum(meal.total_sugar_g for meal in items),
            total_saturated_fat_g=sum(meal.total_saturated_fat_g for meal in items),
        )

    @property
    def is_empty(self) -> bool:
        return self.meal_count == 0

    def same_day(self, other: date) -> bool:
        """Compare by calendar date, ignoring any time of day."""
        return self.day == as_day(other)
