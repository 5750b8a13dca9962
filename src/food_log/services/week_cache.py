"""Cache of fetched week summaries keyed by week key."""

from dataclasses import dataclass, field
from typing import Protocol

from food_log.domain.summaries import DailySummary


class WeekCache(Protocol):
    """Cache interface for per-week summary lists."""

    def get(self, week_key: int) -> list[DailySummary] | None:
        """Return the cached summaries, or None when the week was never fetched."""

    def put(self, week_key: int, summaries: list[DailySummary]) -> None:
        """Replace a week's summaries wholesale."""

    def invalidate(self, week_key: int) -> None:
        """Drop a week so the next access refetches it."""

    def clear(self) -> None:
        """Drop every cached week."""

    def contains(self, week_key: int) -> bool:
        """Return True when the week has been fetched."""

    def keys(self) -> list[int]:
        """Return the cached week keys."""


@dataclass
class InMemoryWeekCache(WeekCache):
    """Dict-backed week cache.

    An absent key means "not fetched"; an empty list means "fetched, no
    activity". Entries are only ever replaced or removed as a whole.
    """

    _entries: dict[int, list[DailySummary]] = field(default_factory=dict)

    def get(self, week_key: int) -> list[DailySummary] | None:
        """Return a copy of the cached week, if present."""
        entry = self._entries.get(week_key)
        if entry is None:
            return None
        return list(entry)

    def put(self, week_key: int, summaries: list[DailySummary]) -> None:
        """Store a week's summaries."""
        self._entries[week_key] = list(summaries)

    def invalidate(self, week_key: int) -> None:
        """Remove a week if present."""
        self._entries.pop(week_key, None)

    def clear(self) -> None:
        """Remove all weeks."""
        self._entries.clear()

    def contains(self, week_key: int) -> bool:
        return week_key in self._entries

    def keys(self) -> list[int]:
        return sorted(self._entries)
