"""User goals, preferences and the thresholds derived from them."""

from dataclasses import dataclass, field

from food_log.domain.summaries import DailySummary

KCAL_PER_GRAM_SUGAR = 4
KCAL_PER_GRAM_FAT = 9
MAX_SUGAR_SHARE = 0.10
MAX_SATURATED_FAT_SHARE = 0.10


@dataclass(frozen=True)
class UserGoals:
    """Daily and per-meal nutrition targets."""

    daily_calories: int = 2000
    daily_protein_g: int = 150
    daily_carbs_g: int = 250
    daily_fat_g: int = 67
    daily_fiber_g: int = 30
    is_gain_mode: bool = False
    per_meal_protein_g: int = 40
    per_meal_carbs_g: int = 40
    per_meal_fat_g: int = 20

    @property
    def goal_description(self) -> str:
        if self.is_gain_mode:
            return "gain weight / build muscle"
        return "lose weight / lose fat"


@dataclass(frozen=True)
class UserSettings:
    """App preferences stored for the user."""

    notifications_enabled: bool = True
    meal_reminders_enabled: bool = True
    use_detailed_analysis: bool = False
    sync_to_health: bool = False
    units: str = "Metric"
    reminder_times_minutes: tuple[int, ...] = field(
        default_factory=lambda: (480, 750, 1110)
    )


@dataclass(frozen=True)
class NutritionThresholds:
    """Limits a day's totals are checked against."""

    max_calories: float
    min_fiber_g: float
    max_sugar_g: float
    max_saturated_fat_g: float

    @classmethod
    def from_goals(cls, goals: UserGoals) -> "NutritionThresholds":
        """Derive thresholds from the user's calorie and fiber goals."""
        return cls(
            max_calories=float(goals.daily_calories),
            min_fiber_g=float(goals.daily_fiber_g),
            max_sugar_g=goals.daily_calories * MAX_SUGAR_SHARE / KCAL_PER_GRAM_SUGAR,
            max_saturated_fat_g=(
                goals.daily_calories * MAX_SATURATED_FAT_SHARE / KCAL_PER_GRAM_FAT
            ),
        )

    def flags(self, summary: DailySummary) -> list[str]:
        """Return the thresholds a day's totals violate."""
        if summary.is_empty:
            return []
        result = []
        if summary.total_calories > self.max_calories:
            result.append("over_calories")
        if summary.total_fiber_g < self.min_fiber_g:
            result.append("low_fiber")
        if summary.total_sugar_g > self.max_sugar_g:
            result.append("high_sugar")
        if summary.total_saturated_fat_g > self.max_saturated_fat_g:
            result.append("high_saturated_fat")
        return result
