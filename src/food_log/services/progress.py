"""Twenty-day progress cycles built on the week cache."""

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime
from typing import Protocol

from food_log.domain.evaluation import ProgressEvaluation
from food_log.domain.goals import UserGoals
from food_log.domain.progress import (
    CYCLE_DAYS,
    ELIGIBLE_ACTIVE_DAYS,
    ProgressCycle,
    ProgressSnapshot,
)
from food_log.domain.summaries import DailySummary
from food_log.domain.weeks import as_day, monday_of
from food_log.services.aggregation import AggregationController, FetchError
from food_log.services.evaluation import DailyEvaluationService

_logger = logging.getLogger(__name__)

PROGRESS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "overall_progress": {"type": "string"},
        "strengths": {"type": "string"},
        "improvements": {"type": "string"},
        "score": {"type": "integer", "minimum": 1, "maximum": 10},
    },
    "required": ["overall_progress", "strengths", "improvements", "score"],
    "additionalProperties": False,
}


class ProgressRepository(Protocol):
    """Persistence interface for the user's progress cycle."""

    async def get_progress(self) -> ProgressCycle | None:
        """Return the stored cycle, if any."""

    async def save_progress(self, cycle: ProgressCycle) -> None:
        """Store the cycle, replacing the previous one."""


class ProgressNotEligibleError(RuntimeError):
    """Raised when a cycle is evaluated before it qualifies."""


@dataclass
class ProgressService:
    """Tracks the current progress cycle from cached week summaries.

    A cycle starts at the first logged meal and spans twenty days. It becomes
    eligible for an evaluation at eighteen active days. After twenty days a
    new cycle starts today (see ``ProgressCycle.should_roll_over``).
    """

    controller: AggregationController
    repository: ProgressRepository
    evaluation_service: DailyEvaluationService | None = None

    async def snapshot(self) -> ProgressSnapshot:
        """Return the current cycle with its active days recounted."""
        cycle = await self._current_cycle()
        return ProgressSnapshot.of(cycle, self.controller.today())

    async def evaluate(self) -> ProgressEvaluation:
        """Evaluate an eligible cycle and store the result on it."""
        if self.evaluation_service is None:
            raise RuntimeError("Progress evaluation is not configured")
        cycle = await self._current_cycle()
        snapshot = ProgressSnapshot.of(cycle, self.controller.today())
        if cycle.start is None or not snapshot.is_eligible:
            raise ProgressNotEligibleError(
                f"Progress needs {ELIGIBLE_ACTIVE_DAYS} active days without an "
                f"evaluation; cycle has {snapshot.active_days}"
            )
        try:
            goals = await self.controller.repository.fetch_user_goals()
        except Exception as exc:
            raise FetchError("Failed to load goals") from exc
        summaries = [self.controller.get_summary_for_date(day) for day in cycle.days()]
        prompt = build_progress_prompt(summaries, goals, snapshot.active_days)
        raw = await self.evaluation_service.complete(prompt, PROGRESS_SCHEMA)
        evaluation = ProgressEvaluation.model_validate(
            {
                **raw,
                "cycle_start": cycle.start,
                "active_days": snapshot.active_days,
                "evaluated_at": datetime.now(tz=UTC),
            }
        )
        await self.repository.save_progress(replace(cycle, last_evaluation=evaluation))
        _logger.info("Stored progress evaluation for cycle from %s", cycle.start)
        return evaluation

    async def _current_cycle(self) -> ProgressCycle:
        try:
            stored = await self.repository.get_progress()
        except Exception as exc:
            raise FetchError("Failed to load progress") from exc
        cycle = stored or ProgressCycle()
        if cycle.start is None:
            first = await self._first_meal_day()
            if first is None:
                return cycle
            cycle = ProgressCycle(start=first)

        cycle = await self._with_activity(cycle)
        today = self.controller.today()
        if cycle.should_roll_over(today):
            _logger.info("Progress cycle from %s ended", cycle.start)
            cycle = await self._with_activity(ProgressCycle(start=today))

        if cycle != stored:
            try:
                await self.repository.save_progress(cycle)
            except Exception as exc:
                _logger.warning("Failed to store progress cycle: %s", exc)
        return cycle

    async def _first_meal_day(self) -> date | None:
        try:
            first = await self.controller.repository.fetch_first_meal_date()
        except Exception as exc:
            raise FetchError("Failed to load first meal date") from exc
        return as_day(first) if first is not None else None

    async def _with_activity(self, cycle: ProgressCycle) -> ProgressCycle:
        mondays = sorted({monday_of(day) for day in cycle.days()})
        weeks = await asyncio.gather(
            *(self.controller.ensure_week_loaded(monday) for monday in mondays)
        )
        active = [
            summary.day
            for summaries in weeks
            for summary in summaries
            if not summary.is_empty
        ]
        return cycle.with_active_days(active)


def build_progress_prompt(
    summaries: list[DailySummary], goals: UserGoals, active_days: int
) -> str:
    """Build the progress prompt from the cycle's daily totals."""
    day_lines = [
        (
            f"- {summary.day.isoformat()}: {summary.meal_count} meals, "
            f"{summary.total_calories:.0f} kcal, "
            f"protein {summary.total_protein_g:.0f} g, "
            f"carbs {summary.total_carbs_g:.0f} g, "
            f"fat {summary.total_fat_g:.0f} g, "
            f"fiber {summary.total_fiber_g:.0f} g, "
            f"sugar {summary.total_sugar_g:.0f} g"
        )
        for summary in summaries
    ]
    return "\n".join(
        [
            f"Evaluate {CYCLE_DAYS} days of eating. Goal: {goals.goal_description}.",
            (
                f"Daily targets: {goals.daily_calories} kcal, "
                f"protein {goals.daily_protein_g} g, "
                f"fiber {goals.daily_fiber_g} g."
            ),
            f"Meals were logged on {active_days} of {CYCLE_DAYS} days.",
            "Days:",
            *day_lines,
            (
                "Return the overall progress, strengths, improvements and a score "
                "from 1 to 10."
            ),
        ]
    )
