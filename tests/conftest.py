"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, time, timedelta
from uuid import UUID, uuid4

import pytest

from food_log.config import Settings
from food_log.containers import AppContainer
from food_log.domain.evaluation import DailyEvaluation
from food_log.domain.goals import UserGoals, UserSettings
from food_log.domain.meals import Ingredient, Meal
from food_log.domain.progress import ProgressCycle
from food_log.domain.summaries import DailySummary
from food_log.domain.weeks import DAYS_PER_WEEK
from food_log.services.aggregation import AggregationController, SummaryRepository
from food_log.services.chart_window import ChartWindowProvider
from food_log.services.evaluation import (
    DailyEvaluationService,
    EvaluationClient,
    EvaluationRepository,
)
from food_log.services.export import MealExportService
from food_log.services.progress import ProgressRepository, ProgressService
from food_log.services.week_cache import InMemoryWeekCache

# Wednesday; its week starts on Monday 2024-05-13.
TODAY = date(2024, 5, 15)


def make_meal(  # noqa: PLR0913
    day: date,
    calories: float = 500.0,
    *,
    name: str = "Lunch",
    hour: int = 12,
    meal_id: UUID | None = None,
    protein_g: float = 30.0,
    fiber_g: float = 5.0,
    sugar_g: float = 10.0,
    saturated_fat_g: float = 5.0,
) -> Meal:
    """Build a one-ingredient meal logged at a UTC hour of a day."""
    return Meal(
        id=meal_id or uuid4(),
        name=name,
        logged_at=datetime.combine(day, time(hour=hour), tzinfo=UTC),
        ingredients=(
            Ingredient(
                name=name.lower(),
                amount=100.0,
                base_amount=100.0,
                unit="g",
                base_calories=calories,
                base_protein_g=protein_g,
                base_carbs_g=40.0,
                base_fat_g=15.0,
                base_fiber_g=fiber_g,
                base_sugar_g=sugar_g,
                base_saturated_fat_g=saturated_fat_g,
            ),
        ),
    )


@dataclass
class InMemorySummaryRepository(SummaryRepository):
    """In-memory meal store that records every remote call.

    Week results are computed when the request is made, so a gated fetch
    returns the data as it was before any later write.
    """

    meals: list[Meal] = field(default_factory=list)
    goals: UserGoals = field(default_factory=UserGoals)
    settings: UserSettings = field(default_factory=UserSettings)
    week_fetches: list[date] = field(default_factory=list)
    meal_fetches: list[date] = field(default_factory=list)
    fail_weeks: bool = False
    fail_meals: bool = False
    fail_writes: bool = False
    fail_first_meal: bool = False
    week_gate: asyncio.Event | None = None

    async def fetch_weekly_summaries(self, week_start: date) -> list[DailySummary]:
        self.week_fetches.append(week_start)
        week_end = week_start + timedelta(days=DAYS_PER_WEEK)
        by_day: dict[date, list[Meal]] = {}
        for meal in self.meals:
            day = meal.local_day(UTC)
            if week_start <= day < week_end:
                by_day.setdefault(day, []).append(meal)
        summaries = [
            DailySummary.from_meals(day, items) for day, items in sorted(by_day.items())
        ]
        if self.week_gate is not None:
            await self.week_gate.wait()
        if self.fail_weeks:
            raise RuntimeError("network down")
        return summaries

    async def fetch_meals_for_date(self, day: date) -> list[Meal]:
        self.meal_fetches.append(day)
        if self.fail_meals:
            raise RuntimeError("network down")
        items = [meal for meal in self.meals if meal.local_day(UTC) == day]
        return sorted(items, key=lambda meal: meal.logged_at, reverse=True)

    async def fetch_first_meal_date(self) -> date | None:
        if self.fail_first_meal:
            raise RuntimeError("network down")
        if not self.meals:
            return None
        return min(meal.local_day(UTC) for meal in self.meals)

    async def fetch_all_meals(self) -> list[Meal]:
        return sorted(self.meals, key=lambda meal: meal.logged_at, reverse=True)

    async def create_meal(self, meal: Meal) -> Meal:
        if self.fail_writes:
            raise RuntimeError("write rejected")
        created = meal.with_id(uuid4())
        self.meals.append(created)
        return created

    async def update_meal(self, meal_id: UUID, meal: Meal) -> None:
        if self.fail_writes:
            raise RuntimeError("write rejected")
        self.meals = [
            replace(meal, id=meal_id) if item.id == meal_id else item
            for item in self.meals
        ]

    async def delete_meal(self, meal_id: UUID) -> None:
        if self.fail_writes:
            raise RuntimeError("write rejected")
        self.meals = [item for item in self.meals if item.id != meal_id]

    async def fetch_user_goals(self) -> UserGoals:
        return self.goals

    async def fetch_user_settings(self) -> UserSettings:
        return self.settings


@dataclass
class InMemoryEvaluationRepository(EvaluationRepository):
    """In-memory evaluation repository for tests."""

    evaluations: dict[date, DailyEvaluation] = field(default_factory=dict)
    deleted: list[date] = field(default_factory=list)

    async def get_daily_evaluation(self, day: date) -> DailyEvaluation | None:
        return self.evaluations.get(day)

    async def save_daily_evaluation(self, evaluation: DailyEvaluation) -> None:
        self.evaluations[evaluation.day] = evaluation

    async def delete_daily_evaluation(self, day: date) -> None:
        self.deleted.append(day)
        self.evaluations.pop(day, None)


@dataclass
class InMemoryProgressRepository(ProgressRepository):
    """In-memory progress repository for tests."""

    cycle: ProgressCycle | None = None
    saves: list[ProgressCycle] = field(default_factory=list)

    async def get_progress(self) -> ProgressCycle | None:
        return self.cycle

    async def save_progress(self, cycle: ProgressCycle) -> None:
        self.saves.append(cycle)
        self.cycle = cycle


@dataclass
class FakeEvaluationClient(EvaluationClient):
    """Fake evaluation client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "summary": "Balanced day.",
            "strengths": "Plenty of protein.",
            "improvements": "Add vegetables.",
            "score": 7,
        }
    )
    failures: int = 0
    prompts: list[str] = field(default_factory=list)

    async def evaluate(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        self.prompts.append(prompt)
        if self.failures > 0:
            self.failures -= 1
            raise RuntimeError("model unavailable")
        return self.payload


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        user_id=UUID("00000000-0000-0000-0000-000000000001"),
        api_token="api-token",
        openai_api_key="openai-key",
    )


@pytest.fixture
def summary_repository() -> InMemorySummaryRepository:
    return InMemorySummaryRepository()


@pytest.fixture
def evaluation_repository() -> InMemoryEvaluationRepository:
    return InMemoryEvaluationRepository()


@pytest.fixture
def evaluation_client() -> FakeEvaluationClient:
    return FakeEvaluationClient()


@pytest.fixture
def evaluation_service(
    evaluation_client: FakeEvaluationClient,
    evaluation_repository: InMemoryEvaluationRepository,
) -> DailyEvaluationService:
    return DailyEvaluationService(
        client=evaluation_client,
        repository=evaluation_repository,
        model="gpt-5.2",
        reasoning_effort=None,
        store=False,
        retry_attempts=1,
        retry_delay_seconds=0,
    )


@pytest.fixture
def controller(
    summary_repository: InMemorySummaryRepository,
    evaluation_service: DailyEvaluationService,
) -> AggregationController:
    return AggregationController(
        repository=summary_repository,
        cache=InMemoryWeekCache(),
        evaluation_service=evaluation_service,
        clock=lambda: TODAY,
    )


@pytest.fixture
def progress_repository() -> InMemoryProgressRepository:
    return InMemoryProgressRepository()


@pytest.fixture
def progress_service(
    controller: AggregationController,
    progress_repository: InMemoryProgressRepository,
    evaluation_service: DailyEvaluationService,
) -> ProgressService:
    return ProgressService(
        controller=controller,
        repository=progress_repository,
        evaluation_service=evaluation_service,
    )


@pytest.fixture
def container(
    settings: Settings,
    summary_repository: InMemorySummaryRepository,
    evaluation_service: DailyEvaluationService,
    controller: AggregationController,
    progress_service: ProgressService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        controller=controller,
        chart_window=ChartWindowProvider(controller),
        evaluation_service=evaluation_service,
        export_service=MealExportService(repository=summary_repository),
        progress_service=progress_service,
        close_resources=close_resources,
    )
