"""Scrollable day window for the nutrition chart."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from food_log.domain.summaries import DailySummary
from food_log.domain.weeks import DAYS_PER_WEEK, as_day, days_between, monday_of
from food_log.services.aggregation import AggregationController, FetchError

_logger = logging.getLogger(__name__)


@dataclass
class ChartWindowProvider:
    """Maps chart indices to days and prefetches weeks as they scroll in.

    The window runs from the first logged meal (or this week's Monday) to
    today and is never shorter than a week. Index 0 is the oldest day and the
    last index is always today.
    """

    controller: AggregationController
    _first_meal_day: date | None = field(init=False, default=None)
    _first_meal_loaded: bool = field(init=False, default=False)

    @property
    def first_meal_day(self) -> date | None:
        return self._first_meal_day

    async def load_first_meal_date(self) -> date | None:
        """Fetch the first logged meal date once."""
        if self._first_meal_loaded:
            return self._first_meal_day
        try:
            first = await self.controller.repository.fetch_first_meal_date()
        except Exception as exc:
            _logger.warning("Failed to fetch first meal date: %s", exc)
            return None
        self._first_meal_day = as_day(first) if first is not None else None
        self._first_meal_loaded = True
        return self._first_meal_day

    def note_meal_logged(self, day: date) -> None:
        """Grow the window backward when a meal predates the first known one."""
        day = as_day(day)
        if self._first_meal_day is None or day < self._first_meal_day:
            self._first_meal_day = day

    def total_days(self) -> int:
        """Return the number of days in the window."""
        today = self.controller.today()
        start = monday_of(today)
        if self._first_meal_day is not None and self._first_meal_day < start:
            start = self._first_meal_day
        return max(DAYS_PER_WEEK, days_between(start, today) + 1)

    def window_start(self) -> date:
        return self.controller.today() - timedelta(days=self.total_days() - 1)

    def last_index(self) -> int:
        return self.total_days() - 1

    def date_for_index(self, index: int) -> date:
        """Return the day shown at a chart index."""
        if index < 0 or index >= self.total_days():
            raise IndexError(f"Chart index {index} is outside the window")
        return self.window_start() + timedelta(days=index)

    def index_for_date(self, day: date) -> int:
        """Return the chart index of a day."""
        index = days_between(self.window_start(), day)
        if index < 0 or index >= self.total_days():
            raise IndexError(f"{as_day(day).isoformat()} is outside the window")
        return index

    def summary_for_index(self, index: int) -> DailySummary:
        """Return the cached summary for an index, or the empty summary."""
        return self.controller.get_summary_for_date(self.date_for_index(index))

    async def on_index_visible(self, index: int) -> list[DailySummary] | None:
        """Load the week of a newly visible index if it is not cached yet."""
        day = self.date_for_index(index)
        if self.controller.is_week_cached(day):
            return None
        try:
            return await self.controller.ensure_week_loaded(day)
        except FetchError as exc:
            _logger.warning("Prefetch for %s failed: %s", day.isoformat(), exc)
            return None

    async def on_range_visible(self, first_index: int, last_index: int) -> int:
        """Prefetch every uncached week in a visible range.

        Returns the number of weeks that were requested.
        """
        last_index = min(last_index, self.last_index())
        first_index = max(first_index, 0)
        pending: dict[date, int] = {}
        for index in range(first_index, last_index + 1):
            day = self.date_for_index(index)
            if not self.controller.is_week_cached(day):
                pending.setdefault(monday_of(day), index)
        await asyncio.gather(*(self.on_index_visible(i) for i in pending.values()))
        return len(pending)

    async def jump_to_today(self) -> int:
        """Select today and return the index the viewport should scroll to."""
        await self.controller.select_date(self.controller.today())
        return self.last_index()
