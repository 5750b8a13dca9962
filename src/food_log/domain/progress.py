"""Twenty-day progress cycles."""

from dataclasses import dataclass
from datetime import date, timedelta

from food_log.domain.evaluation import ProgressEvaluation
from food_log.domain.weeks import as_day, days_between

CYCLE_DAYS = 20
ELIGIBLE_ACTIVE_DAYS = 18


@dataclass(frozen=True)
class ProgressCycle:
    """Stored state of the current progress cycle.

    A cycle without a start has not begun; it begins on the first day with a
    logged meal. Active days are days of the cycle with at least one meal.
    """

    start: date | None = None
    active_days: tuple[date, ...] = ()
    last_evaluation: ProgressEvaluation | None = None

    def days(self) -> list[date]:
        """Return the calendar days the cycle covers."""
        if self.start is None:
            return []
        return [self.start + timedelta(days=offset) for offset in range(CYCLE_DAYS)]

    def contains(self, day: date) -> bool:
        if self.start is None:
            return False
        return 0 <= days_between(self.start, day) < CYCLE_DAYS

    def days_elapsed(self, today: date) -> int:
        """Days of the cycle up to and including today."""
        if self.start is None:
            return 0
        return min(max(days_between(self.start, today) + 1, 0), CYCLE_DAYS)

    def has_ended(self, today: date) -> bool:
        return self.start is not None and days_between(self.start, today) >= CYCLE_DAYS

    def should_roll_over(self, today: date) -> bool:
        """An ended cycle is replaced once evaluated or once it cannot qualify.

        An ended cycle that qualified but has no evaluation yet is kept, so
        its evaluation can still be requested.
        """
        if not self.has_ended(today):
            return False
        return (
            self.last_evaluation is not None
            or len(self.active_days) < ELIGIBLE_ACTIVE_DAYS
        )

    def with_active_days(self, days: list[date]) -> "ProgressCycle":
        """Return the cycle with its active days replaced."""
        active = sorted({as_day(day) for day in days if self.contains(day)})
        return ProgressCycle(
            start=self.start,
            active_days=tuple(active),
            last_evaluation=self.last_evaluation,
        )


@dataclass(frozen=True)
class ProgressSnapshot:
    """Computed view of a progress cycle on a given day."""

    cycle_start: date | None
    days_in_cycle: int
    active_day_flags: tuple[bool, ...]
    days_remaining: int
    is_eligible: bool
    last_evaluation: ProgressEvaluation | None

    @property
    def active_days(self) -> int:
        return sum(self.active_day_flags)

    @classmethod
    def of(cls, cycle: ProgressCycle, today: date) -> "ProgressSnapshot":
        """Build the snapshot of a cycle as seen on ``today``."""
        active = set(cycle.active_days)
        if cycle.start is None:
            flags = (False,) * CYCLE_DAYS
        else:
            flags = tuple(day in active for day in cycle.days())
        elapsed = cycle.days_elapsed(today)
        return cls(
            cycle_start=cycle.start,
            days_in_cycle=elapsed,
            active_day_flags=flags,
            days_remaining=CYCLE_DAYS - elapsed,
            is_eligible=(
                sum(flags) >= ELIGIBLE_ACTIVE_DAYS and cycle.last_evaluation is None
            ),
            last_evaluation=cycle.last_evaluation,
        )
