"""AI evaluation of a day's meals."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Protocol

from food_log.domain.evaluation import DailyEvaluation
from food_log.domain.goals import NutritionThresholds
from food_log.domain.meals import Meal
from food_log.domain.summaries import DailySummary

_logger = logging.getLogger(__name__)

EVALUATION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "summary": {"type": "string"},
        "strengths": {"type": "string"},
        "improvements": {"type": "string"},
        "score": {"type": "integer", "minimum": 1, "maximum": 10},
    },
    "required": ["summary", "strengths", "improvements", "score"],
    "additionalProperties": False,
}


class EvaluationClient(Protocol):
    """Interface for LLM day evaluations."""

    async def evaluate(
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Return structured evaluation data."""


class EvaluationRepository(Protocol):
    """Persistence interface for day evaluations."""

    async def get_daily_evaluation(self, day: date) -> DailyEvaluation | None:
        """Return the stored evaluation for a day."""

    async def save_daily_evaluation(self, evaluation: DailyEvaluation) -> None:
        """Store an evaluation, replacing any previous one for the day."""

    async def delete_daily_evaluation(self, day: date) -> None:
        """Remove the stored evaluation for a day."""


@dataclass
class DailyEvaluationService:
    """Service that prompts for, validates and stores day evaluations."""

    client: EvaluationClient
    repository: EvaluationRepository
    model: str
    reasoning_effort: str | None
    store: bool
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.5

    async def load(self, day: date) -> DailyEvaluation | None:
        """Return the stored evaluation for a day."""
        return await self.repository.get_daily_evaluation(day)

    async def discard(self, day: date) -> None:
        """Delete the stored evaluation for a day."""
        await self.repository.delete_daily_evaluation(day)

    async def evaluate(
        self,
        day: date,
        summary: DailySummary,
        meals: list[Meal],
        thresholds: NutritionThresholds,
    ) -> DailyEvaluation:
        """Evaluate a day's meals and persist the result."""
        prompt = build_prompt(day, summary, meals, thresholds)
        raw = await self._call_with_retry(prompt, EVALUATION_SCHEMA)
        evaluation = DailyEvaluation.model_validate(
            {**raw, "day": day, "evaluated_at": datetime.now(tz=UTC)}
        )
        await self.repository.save_daily_evaluation(evaluation)
        return evaluation

    async def complete(
        self, prompt: str, schema: dict[str, object]
    ) -> dict[str, object]:
        """Run a structured prompt with the configured model and retries."""
        return await self._call_with_retry(prompt, schema)

    async def _call_with_retry(
        self, prompt: str, schema: dict[str, object]
    ) -> dict[str, object]:
        attempt = 0
        while True:
            try:
                return await self.client.evaluate(
                    model=self.model,
                    reasoning_effort=self.reasoning_effort,
                    store=self.store,
                    schema=schema,
                    prompt=prompt,
                )
            except Exception as exc:
                attempt += 1
                _logger.warning(
                    "Evaluation request failed (attempt %s/%s): %s",
                    attempt,
                    self.retry_attempts + 1,
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def build_prompt(
    day: date,
    summary: DailySummary,
    meals: list[Meal],
    thresholds: NutritionThresholds,
) -> str:
    """Build the evaluation prompt from a day's totals and meals."""
    meal_lines = [f"- {meal.describe()}" for meal in meals] or ["- No meals"]
    flags = thresholds.flags(summary)
    return "\n".join(
        [
            f"Evaluate the nutrition of {day.isoformat()}.",
            (
                f"Totals: {summary.total_calories:.0f} kcal, "
                f"protein {summary.total_protein_g:.0f} g, "
                f"carbs {summary.total_carbs_g:.0f} g, "
                f"fat {summary.total_fat_g:.0f} g, "
                f"fiber {summary.total_fiber_g:.0f} g, "
                f"sugar {summary.total_sugar_g:.0f} g, "
                f"saturated fat {summary.total_saturated_fat_g:.0f} g."
            ),
            (
                f"Targets: at most {thresholds.max_calories:.0f} kcal, "
                f"at least {thresholds.min_fiber_g:.0f} g fiber, "
                f"at most {thresholds.max_sugar_g:.0f} g sugar, "
                f"at most {thresholds.max_saturated_fat_g:.0f} g saturated fat."
            ),
            f"Flags: {', '.join(flags) if flags else 'none'}.",
            "Meals:",
            *meal_lines,
            (
                "Return a short summary, strengths, improvements and a score "
                "from 1 to 10."
            ),
        ]
    )
