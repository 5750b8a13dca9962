"""Supabase repository for the user's progress cycle."""

import asyncio
from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from food_log.adapters.supabase_rows import ProgressRow, drop_nulls
from food_log.domain.progress import ProgressCycle
from food_log.services.progress import ProgressRepository


@dataclass
class SupabaseProgressRepository(ProgressRepository):
    """Supabase implementation storing one progress row per user."""

    client: Client
    user_id: UUID

    async def get_progress(self) -> ProgressCycle | None:
        """Return the stored cycle, if any."""
        return await asyncio.to_thread(self._select)

    async def save_progress(self, cycle: ProgressCycle) -> None:
        """Upsert the user's cycle."""
        await asyncio.to_thread(self._upsert, cycle)

    def _select(self) -> ProgressCycle | None:
        response = (
            self.client.table("progress_cycles")
            .select("cycle_start, active_days, last_evaluation")
            .eq("user_id", str(self.user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return ProgressRow.model_validate(drop_nulls(response.data[0])).to_domain()

    def _upsert(self, cycle: ProgressCycle) -> None:
        evaluation = cycle.last_evaluation
        self.client.table("progress_cycles").upsert(
            {
                "user_id": str(self.user_id),
                "cycle_start": cycle.start.isoformat() if cycle.start else None,
                "active_days": [day.isoformat() for day in cycle.active_days],
                "last_evaluation": (
                    evaluation.model_dump(mode="json") if evaluation else None
                ),
            },
            on_conflict="user_id",
        ).execute()
