"""Supabase repository for daily AI evaluations."""

import asyncio
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from supabase import Client

from food_log.adapters.supabase_rows import EvaluationRow
from food_log.domain.evaluation import DailyEvaluation
from food_log.services.evaluation import EvaluationRepository


@dataclass
class SupabaseEvaluationRepository(EvaluationRepository):
    """Supabase implementation for day evaluations of one user."""

    client: Client
    user_id: UUID

    async def get_daily_evaluation(self, day: date) -> DailyEvaluation | None:
        """Return the stored evaluation for a day."""
        return await asyncio.to_thread(self._select, day)

    async def save_daily_evaluation(self, evaluation: DailyEvaluation) -> None:
        """Upsert the evaluation for its day."""
        await asyncio.to_thread(self._upsert, evaluation)

    async def delete_daily_evaluation(self, day: date) -> None:
        """Delete the evaluation for a day."""
        await asyncio.to_thread(self._delete, day)

    def _select(self, day: date) -> DailyEvaluation | None:
        response = (
            self.client.table("daily_evaluations")
            .select("day, evaluation")
            .eq("user_id", str(self.user_id))
            .eq("day", day.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return EvaluationRow.model_validate(response.data[0]).to_domain()

    def _upsert(self, evaluation: DailyEvaluation) -> None:
        self.client.table("daily_evaluations").upsert(
            {
                "user_id": str(self.user_id),
                "day": evaluation.day.isoformat(),
                "evaluation": evaluation.model_dump(mode="json", exclude={"day"}),
            },
            on_conflict="user_id,day",
        ).execute()

    def _delete(self, day: date) -> None:
        self.client.table("daily_evaluations").delete().eq(
            "user_id", str(self.user_id)
        ).eq("day", day.isoformat()).execute()
