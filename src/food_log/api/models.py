"""Request payloads and response rendering for the HTTP API."""

from dataclasses import asdict
from datetime import date
from uuid import UUID

from pydantic import AwareDatetime, BaseModel, Field

from food_log.domain.evaluation import DailyEvaluation, ProgressEvaluation
from food_log.domain.meals import Ingredient, Meal
from food_log.domain.progress import ProgressSnapshot
from food_log.domain.summaries import DailySummary
from food_log.services.aggregation import Selection


class IngredientPayload(BaseModel):
    name: str
    amount: float = Field(ge=0)
    base_amount: float = Field(ge=0)
    unit: str = "g"
    base_calories: float = Field(ge=0)
    base_protein_g: float = Field(0.0, ge=0)
    base_carbs_g: float = Field(0.0, ge=0)
    base_fat_g: float = Field(0.0, ge=0)
    base_fiber_g: float = Field(0.0, ge=0)
    base_sugar_g: float = Field(0.0, ge=0)
    base_saturated_fat_g: float = Field(0.0, ge=0)

    def to_domain(self) -> Ingredient:
        return Ingredient(**self.model_dump())


class MealPayload(BaseModel):
    """Meal as submitted by a client for create or update."""

    name: str = Field(min_length=1)
    logged_at: AwareDatetime
    ingredients: list[IngredientPayload] = Field(default_factory=list)
    image_url: str | None = None
    notes: str | None = None
    ai_evaluation: str | None = None
    is_highly_processed: bool | None = None

    def to_domain(self, meal_id: UUID | None = None) -> Meal:
        return Meal(
            id=meal_id,
            name=self.name,
            logged_at=self.logged_at,
            ingredients=tuple(item.to_domain() for item in self.ingredients),
            image_url=self.image_url,
            notes=self.notes,
            ai_evaluation=self.ai_evaluation,
            is_highly_processed=self.is_highly_processed,
        )


class MealUpdatePayload(MealPayload):
    previous_day: date | None = None


class SelectPayload(BaseModel):
    day: date


class VisibleRangePayload(BaseModel):
    first_index: int = Field(ge=0)
    last_index: int = Field(ge=0)


def summary_to_dict(summary: DailySummary) -> dict[str, object]:
    payload = asdict(summary)
    payload["day"] = summary.day.isoformat()
    return payload


def meal_to_dict(meal: Meal) -> dict[str, object]:
    return {
        "id": str(meal.id) if meal.id else None,
        "name": meal.name,
        "logged_at": meal.logged_at.isoformat(),
        "ingredients": [asdict(item) for item in meal.ingredients],
        "image_url": meal.image_url,
        "notes": meal.notes,
        "ai_evaluation": meal.ai_evaluation,
        "is_highly_processed": meal.is_highly_processed,
        "total_calories": meal.total_calories,
        "total_protein_g": meal.total_protein_g,
        "total_carbs_g": meal.total_carbs_g,
        "total_fat_g": meal.total_fat_g,
        "total_fiber_g": meal.total_fiber_g,
        "total_sugar_g": meal.total_sugar_g,
        "total_saturated_fat_g": meal.total_saturated_fat_g,
    }


def evaluation_to_dict(evaluation: DailyEvaluation | None) -> dict[str, object] | None:
    if evaluation is None:
        return None
    return evaluation.model_dump(mode="json")


def selection_to_dict(selection: Selection) -> dict[str, object]:
    return {
        "day": selection.day.isoformat(),
        "week_key": selection.week_key,
        "summary": summary_to_dict(selection.summary),
        "totals": summary_to_dict(selection.totals),
        "meals": [meal_to_dict(meal) for meal in selection.meals],
        "evaluation": evaluation_to_dict(selection.evaluation),
        "is_loading": selection.is_loading,
    }


def progress_evaluation_to_dict(
    evaluation: ProgressEvaluation | None,
) -> dict[str, object] | None:
    if evaluation is None:
        return None
    return evaluation.model_dump(mode="json")


def progress_to_dict(snapshot: ProgressSnapshot) -> dict[str, object]:
    start = snapshot.cycle_start
    return {
        "cycle_start": start.isoformat() if start else None,
        "days_in_cycle": snapshot.days_in_cycle,
        "active_days": snapshot.active_days,
        "active_day_flags": list(snapshot.active_day_flags),
        "days_remaining": snapshot.days_remaining,
        "is_eligible": snapshot.is_eligible,
        "last_evaluation": progress_evaluation_to_dict(snapshot.last_evaluation),
    }
