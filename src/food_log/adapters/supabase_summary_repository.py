"""Supabase repository for meals and their daily aggregates."""

import asyncio
from collections import defaultdict
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from uuid import UUID
from zoneinfo import ZoneInfo

from supabase import Client

from food_log.adapters.supabase_rows import (
    GoalsRow,
    MealRow,
    MealTotalsRow,
    SettingsRow,
    drop_nulls,
)
from food_log.domain.goals import UserGoals, UserSettings
from food_log.domain.meals import Meal
from food_log.domain.summaries import DailySummary
from food_log.domain.weeks import DAYS_PER_WEEK
from food_log.services.aggregation import SummaryRepository

_TOTAL_COLUMNS = (
    "logged_at, total_calories, total_protein_g, total_carbs_g, total_fat_g, "
    "total_fiber_g, total_sugar_g, total_saturated_fat_g"
)
_MEAL_COLUMNS = (
    "id, name, ingredients, image_url, notes, ai_evaluation, is_highly_processed, "
    + _TOTAL_COLUMNS
)


@dataclass
class SupabaseSummaryRepository(SummaryRepository):
    """Supabase implementation of the summary repository for one user.

    Days are bucketed in the user's timezone; the client is synchronous, so
    every query runs in a worker thread.
    """

    client: Client
    user_id: UUID
    timezone_name: str = "UTC"

    @property
    def _tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone_name)

    async def fetch_weekly_summaries(self, week_start: date) -> list[DailySummary]:
        """Return summaries for the active days of a week."""
        start = self._local_midnight(week_start)
        end = self._local_midnight(week_start + timedelta(days=DAYS_PER_WEEK))
        rows = await asyncio.to_thread(self._select_totals, start, end)
        return _summaries_by_day(rows, self._tz)

    async def fetch_meals_for_date(self, day: date) -> list[Meal]:
        """Return meals logged on a local day, newest first."""
        start = self._local_midnight(day)
        end = self._local_midnight(day + timedelta(days=1))
        return await asyncio.to_thread(self._select_meals, start, end)

    async def fetch_all_meals(self) -> list[Meal]:
        """Return every meal of the user, newest first."""
        return await asyncio.to_thread(self._select_meals, None, None)

    async def fetch_first_meal_date(self) -> date | None:
        """Return the local day of the earliest meal."""
        return await asyncio.to_thread(self._select_first_day)

    async def create_meal(self, meal: Meal) -> Meal:
        """Insert a meal and return it with the stored id."""
        return await asyncio.to_thread(self._insert_meal, meal)

    async def update_meal(self, meal_id: UUID, meal: Meal) -> None:
        """Overwrite a meal row."""
        await asyncio.to_thread(self._update_meal, meal_id, meal)

    async def delete_meal(self, meal_id: UUID) -> None:
        """Delete a meal row."""
        await asyncio.to_thread(self._delete_meal, meal_id)

    async def fetch_user_goals(self) -> UserGoals:
        """Return stored goals or defaults."""
        row = await asyncio.to_thread(self._select_single, "user_goals")
        return GoalsRow.model_validate(drop_nulls(row or {})).to_domain()

    async def fetch_user_settings(self) -> UserSettings:
        """Return stored settings or defaults."""
        row = await asyncio.to_thread(self._select_single, "user_settings")
        return SettingsRow.model_validate(drop_nulls(row or {})).to_domain()

    def _local_midnight(self, day: date) -> datetime:
        return datetime.combine(day, time.min, tzinfo=self._tz).astimezone(UTC)

    def _select_totals(self, start: datetime, end: datetime) -> list[MealTotalsRow]:
        response = (
            self.client.table("meals")
            .select(_TOTAL_COLUMNS)
            .eq("user_id", str(self.user_id))
            .gte("logged_at", start.isoformat())
            .lt("logged_at", end.isoformat())
            .order("logged_at", desc=False)
            .execute()
        )
        return [
            MealTotalsRow.model_validate(drop_nulls(row)) for row in response.data or []
        ]

    def _select_meals(
        self, start: datetime | None, end: datetime | None
    ) -> list[Meal]:
        query = (
            self.client.table("meals")
            .select(_MEAL_COLUMNS)
            .eq("user_id", str(self.user_id))
        )
        if start is not None:
            query = query.gte("logged_at", start.isoformat())
        if end is not None:
            query = query.lt("logged_at", end.isoformat())
        response = query.order("logged_at", desc=True).execute()
        return [
            MealRow.model_validate(drop_nulls(row)).to_domain()
            for row in response.data or []
        ]

    def _select_first_day(self) -> date | None:
        response = (
            self.client.table("meals")
            .select("logged_at")
            .eq("user_id", str(self.user_id))
            .order("logged_at", desc=False)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        logged_at = datetime.fromisoformat(str(response.data[0]["logged_at"]))
        return logged_at.astimezone(self._tz).date()

    def _insert_meal(self, meal: Meal) -> Meal:
        response = (
            self.client.table("meals")
            .insert({"user_id": str(self.user_id), **_meal_payload(meal)})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create meal")
        return meal.with_id(UUID(str(response.data[0]["id"])))

    def _update_meal(self, meal_id: UUID, meal: Meal) -> None:
        self.client.table("meals").update(_meal_payload(meal)).eq(
            "id", str(meal_id)
        ).eq("user_id", str(self.user_id)).execute()

    def _delete_meal(self, meal_id: UUID) -> None:
        self.client.table("meals").delete().eq("id", str(meal_id)).eq(
            "user_id", str(self.user_id)
        ).execute()

    def _select_single(self, table: str) -> dict[str, object] | None:
        response = (
            self.client.table(table)
            .select("*")
            .eq("user_id", str(self.user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0]


def _summaries_by_day(rows: list[MealTotalsRow], tz: ZoneInfo) -> list[DailySummary]:
    grouped: dict[date, list[MealTotalsRow]] = defaultdict(list)
    for row in rows:
        grouped[row.logged_at.astimezone(tz).date()].append(row)
    summaries = []
    for day, items in sorted(grouped.items()):
        summaries.append(
            DailySummary(
                day=day,
                meal_count=len(items),
                total_calories=sum(item.total_calories for item in items),
                total_protein_g=sum(item.total_protein_g for item in items),
                total_carbs_g=sum(item.total_carbs_g for item in items),
                total_fat_g=sum(item.total_fat_g for item in items),
                total_fiber_g=sum(item.total_fiber_g for item in items),
                total_sugar_g=sum(item.total_sugar_g for item in items),
                total_saturated_fat_g=sum(
                    item.total_saturated_fat_g for item in items
                ),
            )
        )
    return summaries


def _meal_payload(meal: Meal) -> dict[str, object]:
    return {
        "name": meal.name,
        "logged_at": meal.logged_at.isoformat(),
        "ingredients": [
            {
                "name": item.name,
                "amount": item.amount,
                "base_amount": item.base_amount,
                "unit": item.unit,
                "calories": item.base_calories,
                "protein_g": item.base_protein_g,
                "carbs_g": item.base_carbs_g,
                "fat_g": item.base_fat_g,
                "fiber_g": item.base_fiber_g,
                "sugar_g": item.base_sugar_g,
                "saturated_fat_g": item.base_saturated_fat_g,
            }
            for item in meal.ingredients
        ],
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
