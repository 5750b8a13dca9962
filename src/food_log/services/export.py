"""CSV export of logged meals."""

import csv
import io
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from food_log.services.aggregation import SummaryRepository

CSV_HEADER = [
    "Date",
    "Time",
    "Name",
    "Calories",
    "Protein (g)",
    "Carbs (g)",
    "Fat (g)",
    "Fiber (g)",
    "Sugar (g)",
]


@dataclass
class MealExportService:
    """Service that renders every logged meal as CSV."""

    repository: SummaryRepository
    timezone_name: str = "UTC"

    async def export_csv(self) -> str:
        """Return all meals as CSV text in the user's timezone."""
        tz = ZoneInfo(self.timezone_name)
        meals = await self.repository.fetch_all_meals()
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for meal in meals:
            logged_at = meal.logged_at.astimezone(tz)
            writer.writerow(
                [
                    logged_at.strftime("%Y-%m-%d"),
                    logged_at.strftime("%H:%M"),
                    meal.name,
                    round(meal.total_calories),
                    round(meal.total_protein_g),
                    round(meal.total_carbs_g),
                    round(meal.total_fat_g),
                    round(meal.total_fiber_g),
                    round(meal.total_sugar_g),
                ]
            )
        return buffer.getvalue()
