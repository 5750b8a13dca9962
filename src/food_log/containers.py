"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from food_log.adapters.openai_evaluation_client import OpenAIEvaluationClient
from food_log.adapters.supabase_evaluation_repository import (
    SupabaseEvaluationRepository,
)
from food_log.adapters.supabase_progress_repository import SupabaseProgressRepository
from food_log.adapters.supabase_summary_repository import SupabaseSummaryRepository
from food_log.config import Settings
from food_log.services.aggregation import AggregationController
from food_log.services.chart_window import ChartWindowProvider
from food_log.services.evaluation import DailyEvaluationService
from food_log.services.export import MealExportService
from food_log.services.progress import ProgressService
from food_log.services.week_cache import InMemoryWeekCache


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    controller: AggregationController
    chart_window: ChartWindowProvider
    evaluation_service: DailyEvaluationService
    export_service: MealExportService
    progress_service: ProgressService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    summary_repository = SupabaseSummaryRepository(
        client=supabase_client,
        user_id=resolved_settings.user_id,
        timezone_name=resolved_settings.timezone,
    )
    evaluation_repository = SupabaseEvaluationRepository(
        client=supabase_client, user_id=resolved_settings.user_id
    )
    openai_client = OpenAIEvaluationClient.create(
        resolved_settings.openai_api_key,
        timeout_seconds=resolved_settings.openai_timeout_seconds,
    )
    evaluation_service = DailyEvaluationService(
        client=openai_client,
        repository=evaluation_repository,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        retry_attempts=resolved_settings.evaluation_retry_attempts,
    )
    controller = AggregationController(
        repository=summary_repository,
        cache=InMemoryWeekCache(),
        timezone_name=resolved_settings.timezone,
        evaluation_service=evaluation_service,
    )
    chart_window = ChartWindowProvider(controller)
    export_service = MealExportService(
        repository=summary_repository, timezone_name=resolved_settings.timezone
    )
    progress_service = ProgressService(
        controller=controller,
        repository=SupabaseProgressRepository(
            client=supabase_client, user_id=resolved_settings.user_id
        ),
        evaluation_service=evaluation_service,
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        controller=controller,
        chart_window=chart_window,
        evaluation_service=evaluation_service,
        export_service=export_service,
        progress_service=progress_service,
        close_resources=close_resources,
    )
