"""Pydantic models validating rows read from Supabase."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from food_log.domain.evaluation import DailyEvaluation, ProgressEvaluation
from food_log.domain.goals import UserGoals, UserSettings
from food_log.domain.meals import Ingredient, Meal
from food_log.domain.progress import ProgressCycle


class IngredientRow(BaseModel):
    """Ingredient stored in the meal's ``ingredients`` JSON column."""

    name: str
    amount: float = Field(default=1.0, ge=0.0)
    base_amount: float = Field(default=1.0, ge=0.0)
    unit: str = "serving"
    calories: float = Field(default=0.0, ge=0.0)
    protein_g: float = Field(default=0.0, ge=0.0)
    carbs_g: float = Field(default=0.0, ge=0.0)
    fat_g: float = Field(default=0.0, ge=0.0)
    fiber_g: float = Field(default=0.0, ge=0.0)
    sugar_g: float = Field(default=0.0, ge=0.0)
    saturated_fat_g: float = Field(default=0.0, ge=0.0)

    @model_validator(mode="before")
    @classmethod
    def _drop_null_values(cls, data: object) -> object:
        if isinstance(data, dict):
            return drop_nulls(data)
        return data

    def to_domain(self) -> Ingredient:
        return Ingredient(
            name=self.name,
            amount=self.amount,
            base_amount=self.base_amount,
            unit=self.unit,
            base_calories=self.calories,
            base_protein_g=self.protein_g,
            base_carbs_g=self.carbs_g,
            base_fat_g=self.fat_g,
            base_fiber_g=self.fiber_g,
            base_sugar_g=self.sugar_g,
            base_saturated_fat_g=self.saturated_fat_g,
        )


class MealTotalsRow(BaseModel):
    """Totals columns of a meal row, enough to aggregate a day."""

    logged_at: datetime
    total_calories: float = Field(default=0.0, ge=0.0)
    total_protein_g: float = Field(default=0.0, ge=0.0)
    total_carbs_g: float = Field(default=0.0, ge=0.0)
    total_fat_g: float = Field(default=0.0, ge=0.0)
    total_fiber_g: float = Field(default=0.0, ge=0.0)
    total_sugar_g: float = Field(default=0.0, ge=0.0)
    total_saturated_fat_g: float = Field(default=0.0, ge=0.0)


class MealRow(MealTotalsRow):
    """Full meal row."""

    id: UUID
    name: str = "Meal"
    ingredients: list[IngredientRow] | None = None
    image_url: str | None = None
    notes: str | None = None
    ai_evaluation: str | None = None
    is_highly_processed: bool | None = None

    def to_domain(self) -> Meal:
        ingredients = [item.to_domain() for item in self.ingredients or []]
        if not ingredients:
            # Quick-add rows carry only totals.
            ingredients = [
                Ingredient(
                    name=self.name,
                    amount=1.0,
                    base_amount=1.0,
                    unit="serving",
                    base_calories=self.total_calories,
                    base_protein_g=self.total_protein_g,
                    base_carbs_g=self.total_carbs_g,
                    base_fat_g=self.total_fat_g,
                    base_fiber_g=self.total_fiber_g,
                    base_sugar_g=self.total_sugar_g,
                    base_saturated_fat_g=self.total_saturated_fat_g,
                )
            ]
        return Meal(
            id=self.id,
            name=self.name,
            logged_at=self.logged_at,
            ingredients=tuple(ingredients),
            image_url=self.image_url,
            notes=self.notes,
            ai_evaluation=self.ai_evaluation,
            is_highly_processed=self.is_highly_processed,
        )


class GoalsRow(BaseModel):
    """Row of the ``user_goals`` table; missing values fall back to defaults."""

    daily_calories: int = UserGoals.daily_calories
    daily_protein_g: int = UserGoals.daily_protein_g
    daily_carbs_g: int = UserGoals.daily_carbs_g
    daily_fat_g: int = UserGoals.daily_fat_g
    daily_fiber_g: int = UserGoals.daily_fiber_g
    is_gain_mode: bool = UserGoals.is_gain_mode
    per_meal_protein_g: int = UserGoals.per_meal_protein_g
    per_meal_carbs_g: int = UserGoals.per_meal_carbs_g
    per_meal_fat_g: int = UserGoals.per_meal_fat_g

    def to_domain(self) -> UserGoals:
        return UserGoals(**self.model_dump())


class SettingsRow(BaseModel):
    """Row of the ``user_settings`` table."""

    notifications_enabled: bool = True
    meal_reminders_enabled: bool = True
    use_detailed_analysis: bool = False
    sync_to_health: bool = False
    units: str = "Metric"
    reminder_times_minutes: list[int] = Field(
        default_factory=lambda: [480, 750, 1110]
    )

    def to_domain(self) -> UserSettings:
        return UserSettings(
            notifications_enabled=self.notifications_enabled,
            meal_reminders_enabled=self.meal_reminders_enabled,
            use_detailed_analysis=self.use_detailed_analysis,
            sync_to_health=self.sync_to_health,
            units=self.units,
            reminder_times_minutes=tuple(self.reminder_times_minutes),
        )


class EvaluationRow(BaseModel):
    """Row of the ``daily_evaluations`` table."""

    day: date
    evaluation: dict[str, object]

    def to_domain(self) -> DailyEvaluation:
        return DailyEvaluation.model_validate({**self.evaluation, "day": self.day})


class ProgressRow(BaseModel):
    """Row of the ``progress_cycles`` table, one per user."""

    cycle_start: date | None = None
    active_days: list[date] = Field(default_factory=list)
    last_evaluation: ProgressEvaluation | None = None

    def to_domain(self) -> ProgressCycle:
        return ProgressCycle(
            start=self.cycle_start,
            active_days=tuple(sorted(self.active_days)),
            last_evaluation=self.last_evaluation,
        )


def drop_nulls(row: dict[str, object]) -> dict[str, object]:
    """Remove null columns so model defaults apply."""
    return {key: value for key, value in row.items() if value is not None}
