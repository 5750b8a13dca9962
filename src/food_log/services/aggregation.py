"""Aggregation of cached week summaries around the selected day."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from food_log.domain.evaluation import DailyEvaluation
from food_log.domain.goals import NutritionThresholds, UserGoals, UserSettings
from food_log.domain.meals import Meal
from food_log.domain.summaries import DailySummary
from food_log.domain.weeks import as_day, week_key_of, week_start_of
from food_log.services.evaluation import DailyEvaluationService
from food_log.services.meal_list import OptimisticMealList
from food_log.services.week_cache import WeekCache

_logger = logging.getLogger(__name__)

Listener = Callable[[str], None]


class SummaryRepository(Protocol):
    """Remote store for meals and their per-day aggregates."""

    async def fetch_weekly_summaries(self, week_start: date) -> list[DailySummary]:
        """Return summaries for the active days of the week starting on week_start."""

    async def fetch_meals_for_date(self, day: date) -> list[Meal]:
        """Return the meals logged on a day, newest first."""

    async def fetch_first_meal_date(self) -> date | None:
        """Return the day of the earliest logged meal."""

    async def fetch_all_meals(self) -> list[Meal]:
        """Return every logged meal, newest first."""

    async def create_meal(self, meal: Meal) -> Meal:
        """Store a new meal and return it with its id."""

    async def update_meal(self, meal_id: UUID, meal: Meal) -> None:
        """Overwrite a stored meal."""

    async def delete_meal(self, meal_id: UUID) -> None:
        """Delete a stored meal."""

    async def fetch_user_goals(self) -> UserGoals:
        """Return the user's goals, or defaults."""

    async def fetch_user_settings(self) -> UserSettings:
        """Return the user's settings, or defaults."""


class FetchError(RuntimeError):
    """Raised when data could not be loaded from the store."""


class MealWriteError(RuntimeError):
    """Raised when a meal could not be created, updated or deleted."""


@dataclass(frozen=True)
class Selection:
    """Snapshot of the selected day as shown to the user."""

    day: date
    week_key: int
    summary: DailySummary
    totals: DailySummary
    meals: list[Meal]
    evaluation: DailyEvaluation | None
    is_loading: bool


@dataclass
class AggregationController:
    """Owns the week cache, the selected day and its meal list.

    Reads are cache-aside per week; writes invalidate the touched weeks and
    eagerly refetch only the selected one. Concurrent loads of the same week
    share a single in-flight fetch.
    """

    repository: SummaryRepository
    cache: WeekCache
    timezone_name: str = "UTC"
    evaluation_service: DailyEvaluationService | None = None
    clock: Callable[[], date] | None = None
    last_error: Exception | None = field(init=False, default=None)
    _selected_day: date = field(init=False, default=date.min)
    _meal_list: OptimisticMealList = field(
        init=False, default_factory=OptimisticMealList
    )
    _meal_list_day: date | None = field(init=False, default=None)
    _evaluations: dict[date, DailyEvaluation | None] = field(
        init=False, default_factory=dict
    )
    _in_flight: dict[int, "asyncio.Task[list[DailySummary]]"] = field(
        init=False, default_factory=dict
    )
    _loading: set[int] = field(init=False, default_factory=set)
    _generations: dict[int, int] = field(init=False, default_factory=dict)
    _epoch: int = field(init=False, default=0)
    _listeners: list[Listener] = field(init=False, default_factory=list)

    def __post_init__(self) -> None:
        self._tz = ZoneInfo(self.timezone_name)
        self._selected_day = self.today()

    @property
    def timezone(self) -> ZoneInfo:
        return self._tz

    def today(self) -> date:
        """Return today's date in the configured timezone."""
        if self.clock is not None:
            return self.clock()
        return datetime.now(tz=self._tz).date()

    @property
    def selected_day(self) -> date:
        return self._selected_day

    @property
    def selected_week_key(self) -> int:
        return week_key_of(self._selected_day)

    @property
    def selected_meals(self) -> list[Meal]:
        if self._meal_list_day != self._selected_day:
            return []
        return self._meal_list.snapshot()

    @property
    def selected_evaluation(self) -> DailyEvaluation | None:
        return self._evaluations.get(self._selected_day)

    def selected_totals(self) -> DailySummary:
        """Totals recomputed from the displayed meal list."""
        return DailySummary.from_meals(self._selected_day, self.selected_meals)

    def is_loading(self, day: date) -> bool:
        return week_key_of(day) in self._loading

    def is_week_cached(self, day: date) -> bool:
        return self.cache.contains(week_key_of(day))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def selection(self) -> Selection:
        """Return the current selection snapshot."""
        day = self._selected_day
        return Selection(
            day=day,
            week_key=week_key_of(day),
            summary=self.get_summary_for_date(day),
            totals=self.selected_totals(),
            meals=self.selected_meals,
            evaluation=self.selected_evaluation,
            is_loading=self.is_loading(day),
        )

    async def select_date(self, day: date) -> Selection:
        """Select a day, then load its week, meals and evaluation.

        Listeners are notified before any fetch so they can show the cached
        (possibly stale) summary straight away.
        """
        day = as_day(day)
        self._selected_day = day
        if self._meal_list_day != day:
            self._meal_list.replace([])
            self._meal_list_day = None
        self._notify("selection")

        if self.cache.contains(week_key_of(day)):
            await self._refresh_meals()
        else:
            await self.ensure_week_loaded(day)
            # A shared fetch may have refreshed meals for an earlier selection.
            if self._meal_list_day != day:
                await self._refresh_meals()
        await self._load_evaluation(day)
        return self.selection()

    async def ensure_week_loaded(self, day: date) -> list[DailySummary]:
        """Return the week's summaries, fetching them on a cache miss."""
        week_key = week_key_of(day)
        cached = self.cache.get(week_key)
        if cached is not None:
            return cached
        task = self._in_flight.get(week_key)
        if task is None:
            task = asyncio.create_task(self._fetch_week(week_key))
            self._in_flight[week_key] = task
        return await asyncio.shield(task)

    def get_summary_for_date(self, day: date) -> DailySummary:
        """Return the cached summary for a day, or the empty summary."""
        day = as_day(day)
        cached = self.cache.get(week_key_of(day))
        for summary in cached or []:
            if summary.same_day(day):
                return summary
        return DailySummary.empty(day)

    async def record_mutation(
        self,
        affected_day: date,
        *,
        previous_day: date | None = None,
        clear_derived: bool = True,
    ) -> None:
        """Invalidate the weeks a meal change touched.

        A meal moved between weeks invalidates both. Day-scoped derived state
        (the AI evaluation) is dropped for the touched days; plain navigation
        never drops it.
        """
        days = {as_day(affected_day)}
        if previous_day is not None:
            days.add(as_day(previous_day))
        week_keys = sorted({week_key_of(day) for day in days})
        await self._apply_invalidation(week_keys, days, clear_derived=clear_derived)

    async def _apply_invalidation(
        self, week_keys: list[int], days: set[date], *, clear_derived: bool
    ) -> None:
        for week_key in week_keys:
            self._invalidate(week_key)
        _logger.info("Invalidated weeks %s after meal change", week_keys)
        if clear_derived:
            for day in sorted(days):
                await self._clear_evaluation(day)
        self._notify("invalidated")

        if self.selected_week_key in week_keys:
            try:
                await self.ensure_week_loaded(self._selected_day)
            except FetchError as exc:
                _logger.warning("Refetch after meal change failed: %s", exc)

    async def refresh(self) -> Selection:
        """Drop every cached week and reload the selected day."""
        self.cache.clear()
        self._epoch += 1
        self._in_flight.clear()
        self._notify("invalidated")
        return await self.select_date(self._selected_day)

    async def create_meal(self, meal: Meal) -> Meal:
        """Store a new meal and invalidate its week."""
        try:
            created = await self.repository.create_meal(meal)
        except Exception as exc:
            _logger.exception("Failed to create meal %s", meal.name)
            raise MealWriteError(f"Failed to save {meal.name}") from exc
        await self.record_mutation(created.local_day(self._tz))
        return created

    async def update_meal(
        self, meal_id: UUID, meal: Meal, *, previous_day: date | None = None
    ) -> None:
        """Overwrite a meal and invalidate its old and new weeks.

        Without ``previous_day`` the old day is taken from the displayed meal
        list. A meal that is not listed may have come from any cached week, so
        every cached week is invalidated.
        """
        if previous_day is None:
            previous_day = self._listed_day_of(meal_id)
        try:
            await self.repository.update_meal(meal_id, meal)
        except Exception as exc:
            _logger.exception("Failed to update meal %s", meal_id)
            raise MealWriteError(f"Failed to update {meal.name}") from exc
        new_day = meal.local_day(self._tz)
        if previous_day is not None:
            await self.record_mutation(new_day, previous_day=previous_day)
            return
        week_keys = sorted(set(self.cache.keys()) | {week_key_of(new_day)})
        await self._apply_invalidation(week_keys, {new_day}, clear_derived=True)

    async def delete_meal(self, meal: Meal) -> None:
        """Delete a meal, removing it from the displayed list first.

        If the delete fails the meal is put back where it was.
        """
        if meal.id is None:
            raise ValueError("Cannot delete a meal without an id")
        list_day = self._meal_list_day
        removal = self._meal_list.remove(meal.id)
        if removal is not None:
            self._notify("meals")
        try:
            await self.repository.delete_meal(meal.id)
        except Exception as exc:
            _logger.exception("Failed to delete meal %s", meal.id)
            if removal is not None and self._meal_list_day == list_day:
                self._meal_list.restore(removal)
                self._notify("meals")
            raise MealWriteError(f"Failed to delete {meal.name}") from exc
        await self.record_mutation(meal.local_day(self._tz))

    async def evaluate_selected_day(self) -> DailyEvaluation:
        """Run the AI evaluation for the selected day and keep the result."""
        if self.evaluation_service is None:
            raise RuntimeError("Day evaluation is not configured")
        day = self._selected_day
        if self._meal_list_day != day:
            await self._refresh_meals()
        try:
            goals = await self.repository.fetch_user_goals()
        except Exception as exc:
            raise FetchError("Failed to load goals") from exc
        evaluation = await self.evaluation_service.evaluate(
            day,
            self.selected_totals(),
            self.selected_meals,
            NutritionThresholds.from_goals(goals),
        )
        self._evaluations[day] = evaluation
        self._notify("evaluation")
        return evaluation

    async def _fetch_week(self, week_key: int) -> list[DailySummary]:
        week_start = week_start_of(week_key)
        generation = self._generation(week_key)
        self._loading.add(week_key)
        self._notify("loading")
        try:
            summaries = await self.repository.fetch_weekly_summaries(week_start)
        except Exception as exc:
            _logger.warning(
                "Failed to fetch week starting %s: %s", week_start.isoformat(), exc
            )
            self.last_error = exc
            raise FetchError(
                f"Failed to load week starting {week_start.isoformat()}"
            ) from exc
        finally:
            # A newer fetch of the same week owns the loading marker.
            owner = self._in_flight.get(week_key)
            if owner is None or owner is asyncio.current_task():
                self._loading.discard(week_key)
            if owner is asyncio.current_task():
                del self._in_flight[week_key]

        if generation == self._generation(week_key):
            self.cache.put(week_key, summaries)
            self._notify("week_loaded")
        else:
            _logger.debug(
                "Discarding week %s fetched before invalidation", week_start.isoformat()
            )
        if self.selected_week_key == week_key:
            try:
                await self._refresh_meals()
            except FetchError:
                _logger.info(
                    "Week %s loaded without the selected day's meals",
                    week_start.isoformat(),
                )
        return summaries

    async def _refresh_meals(self) -> None:
        day = self._selected_day
        try:
            meals = await self.repository.fetch_meals_for_date(day)
        except Exception as exc:
            _logger.warning("Failed to fetch meals for %s: %s", day.isoformat(), exc)
            self.last_error = exc
            raise FetchError(f"Failed to load meals for {day.isoformat()}") from exc
        if day == self._selected_day:
            self._meal_list.replace(meals)
            self._meal_list_day = day
            self._notify("meals")

    async def _load_evaluation(self, day: date) -> None:
        if self.evaluation_service is None or day in self._evaluations:
            return
        try:
            self._evaluations[day] = await self.evaluation_service.load(day)
        except Exception as exc:
            _logger.warning("Failed to load evaluation for %s: %s", day, exc)

    async def _clear_evaluation(self, day: date) -> None:
        self._evaluations.pop(day, None)
        if self.evaluation_service is None:
            return
        try:
            await self.evaluation_service.discard(day)
        except Exception as exc:
            _logger.warning("Failed to delete evaluation for %s: %s", day, exc)

    def _listed_day_of(self, meal_id: UUID) -> date | None:
        for listed in self._meal_list.snapshot():
            if listed.id == meal_id:
                return listed.local_day(self._tz)
        return None

    def _invalidate(self, week_key: int) -> None:
        self.cache.invalidate(week_key)
        self._generations[week_key] = self._generations.get(week_key, 0) + 1
        self._in_flight.pop(week_key, None)

    def _generation(self, week_key: int) -> tuple[int, int]:
        return self._epoch, self._generations.get(week_key, 0)

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                _logger.exception("Selection listener failed on %s", event)
