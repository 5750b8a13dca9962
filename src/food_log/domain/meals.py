"""Domain models for logged meals."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, tzinfo
from uuid import UUID


@dataclass(frozen=True)
class Ingredient:
    """Ingredient of a meal with macros for its base amount.

    Current values scale linearly with ``amount / base_amount`` so a portion
    edit does not need to re-run the analysis.
    """

    name: str
    amount: float
    base_amount: float
    unit: str
    base_calories: float
    base_protein_g: float
    base_carbs_g: float
    base_fat_g: float
    base_fiber_g: float = 0.0
    base_sugar_g: float = 0.0
    base_saturated_fat_g: float = 0.0

    @property
    def scale_factor(self) -> float:
        """Ratio between the current and the analysed amount."""
        if self.base_amount > 0:
            return self.amount / self.base_amount
        return 1.0

    @property
    def calories(self) -> float:
        return self.base_calories * self.scale_factor

    @property
    def protein_g(self) -> float:
        return self.base_protein_g * self.scale_factor

    @property
    def carbs_g(self) -> float:
        return self.base_carbs_g * self.scale_factor

    @property
    def fat_g(self) -> float:
        return self.base_fat_g * self.scale_factor

    @property
    def fiber_g(self) -> float:
        return self.base_fiber_g * self.scale_factor

    @property
    def sugar_g(self) -> float:
        return self.base_sugar_g * self.scale_factor

    @property
    def saturated_fat_g(self) -> float:
        return self.base_saturated_fat_g * self.scale_factor


@dataclass(frozen=True)
class Meal:
    """A logged meal; totals are the sum of its ingredients."""

    id: UUID | None
    name: str
    logged_at: datetime
    ingredients: tuple[Ingredient, ...] = field(default_factory=tuple)
    image_url: str | None = None
    notes: str | None = None
    ai_evaluation: str | None = None
    is_highly_processed: bool | None = None

    @property
    def total_calories(self) -> float:
        return sum(item.calories for item in self.ingredients)

    @property
    def total_protein_g(self) -> float:
        return sum(item.protein_g for item in self.ingredients)

    @property
    def total_carbs_g(self) -> float:
        return sum(item.carbs_g for item in self.ingredients)

    @property
    def total_fat_g(self) -> float:
        return sum(item.fat_g for item in self.ingredients)

    @property
    def total_fiber_g(self) -> float:
        return sum(item.fiber_g for item in self.ingredients)

    @property
    def total_sugar_g(self) -> float:
        return sum(item.sugar_g for item in self.ingredients)

    @property
    def total_saturated_fat_g(self) -> float:
        return sum(item.saturated_fat_g for item in self.ingredients)

    def local_day(self, tz: tzinfo) -> date:
        """Return the calendar day the meal belongs to in a timezone."""
        return self.logged_at.astimezone(tz).date()

    def with_id(self, meal_id: UUID) -> "Meal":
        """Return a copy carrying the stored id."""
        return replace(self, id=meal_id)

    def describe(self) -> str:
        """One-line description used in evaluation prompts."""
        names = ", ".join(item.name for item in self.ingredients)
        time_label = self.logged_at.strftime("%H:%M")
        if names:
            return f"{time_label} {self.name} ({names})"
        return f"{time_label} {self.name}"
