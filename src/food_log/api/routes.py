"""Food log API endpoints with token auth."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import Response

from food_log.api.models import (
    MealPayload,
    MealUpdatePayload,
    SelectPayload,
    VisibleRangePayload,
    evaluation_to_dict,
    meal_to_dict,
    progress_evaluation_to_dict,
    progress_to_dict,
    selection_to_dict,
    summary_to_dict,
)
from food_log.domain.goals import NutritionThresholds
from food_log.services.aggregation import FetchError
from food_log.services.progress import ProgressNotEligibleError

if TYPE_CHECKING:
    from food_log.containers import AppContainer

router = APIRouter(prefix="/api", tags=["food-log"])


def _get_api_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.api_token


async def require_token(
    x_api_token: str | None = Header(default=None),
    api_token: str = Depends(_get_api_token),
) -> None:
    """Ensure requests include a valid API token."""
    if not x_api_token or x_api_token != api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.get("/selection", dependencies=[Depends(require_token)])
async def get_selection(request: Request) -> dict[str, object]:
    """Return the selected day as currently known, without fetching."""
    return selection_to_dict(_container(request).controller.selection())


@router.post("/selection", dependencies=[Depends(require_token)])
async def select_day(payload: SelectPayload, request: Request) -> dict[str, object]:
    """Select a day and load its week, meals and evaluation."""
    selection = await _container(request).controller.select_date(payload.day)
    return selection_to_dict(selection)


@router.get("/weeks/{day}", dependencies=[Depends(require_token)])
async def week_summaries(day: date, request: Request) -> dict[str, object]:
    """Return the active-day summaries of the week containing a day."""
    summaries = await _container(request).controller.ensure_week_loaded(day)
    return {"days": [summary_to_dict(summary) for summary in summaries]}


@router.get("/days/{day}/summary", dependencies=[Depends(require_token)])
async def day_summary(day: date, request: Request) -> dict[str, object]:
    """Return the cached summary of a day and the limits it exceeds."""
    controller = _container(request).controller
    summary = controller.get_summary_for_date(day)
    try:
        goals = await controller.repository.fetch_user_goals()
    except Exception as exc:
        raise FetchError("Failed to load goals") from exc
    return {
        "summary": summary_to_dict(summary),
        "cached": controller.is_week_cached(day),
        "flags": NutritionThresholds.from_goals(goals).flags(summary),
    }


@router.get("/chart", dependencies=[Depends(require_token)])
async def chart_window(request: Request) -> dict[str, object]:
    """Return the current chart window bounds."""
    chart = _container(request).chart_window
    first = chart.first_meal_day
    return {
        "total_days": chart.total_days(),
        "window_start": chart.window_start().isoformat(),
        "last_index": chart.last_index(),
        "first_meal_day": first.isoformat() if first else None,
    }


@router.get("/chart/days/{index}", dependencies=[Depends(require_token)])
async def chart_day(index: int, request: Request) -> dict[str, object]:
    """Return the summary at a chart index, loading its week if needed."""
    chart = _container(request).chart_window
    try:
        await chart.on_index_visible(index)
        summary = chart.summary_for_index(index)
    except IndexError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
    return {"index": index, "summary": summary_to_dict(summary)}


@router.post("/chart/visible-range", dependencies=[Depends(require_token)])
async def chart_visible_range(
    payload: VisibleRangePayload, request: Request
) -> dict[str, int]:
    """Prefetch every uncached week in a visible index range."""
    if payload.last_index < payload.first_index:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)
    requested = await _container(request).chart_window.on_range_visible(
        payload.first_index, payload.last_index
    )
    return {"requested_weeks": requested}


@router.post("/chart/today", dependencies=[Depends(require_token)])
async def chart_today(request: Request) -> dict[str, object]:
    """Select today and return the index to scroll to."""
    container = _container(request)
    index = await container.chart_window.jump_to_today()
    return {
        "index": index,
        "selection": selection_to_dict(container.controller.selection()),
    }


@router.post(
    "/meals",
    dependencies=[Depends(require_token)],
    status_code=status.HTTP_201_CREATED,
)
async def create_meal(payload: MealPayload, request: Request) -> dict[str, object]:
    """Log a new meal."""
    container = _container(request)
    meal = await container.controller.create_meal(payload.to_domain())
    container.chart_window.note_meal_logged(
        meal.local_day(container.controller.timezone)
    )
    return meal_to_dict(meal)


@router.put("/meals/{meal_id}", dependencies=[Depends(require_token)])
async def update_meal(
    meal_id: UUID, payload: MealUpdatePayload, request: Request
) -> dict[str, object]:
    """Overwrite a logged meal."""
    container = _container(request)
    meal = payload.to_domain(meal_id)
    await container.controller.update_meal(
        meal_id, meal, previous_day=payload.previous_day
    )
    container.chart_window.note_meal_logged(
        meal.local_day(container.controller.timezone)
    )
    return meal_to_dict(meal)


@router.delete(
    "/meals/{meal_id}",
    dependencies=[Depends(require_token)],
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_meal(meal_id: UUID, request: Request) -> Response:
    """Delete a meal of the selected day."""
    controller = _container(request).controller
    meal = next(
        (item for item in controller.selected_meals if item.id == meal_id), None
    )
    if meal is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Meal is not listed for the selected day",
        )
    await controller.delete_meal(meal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/refresh", dependencies=[Depends(require_token)])
async def refresh(request: Request) -> dict[str, object]:
    """Drop every cached week and reload the selected day."""
    selection = await _container(request).controller.refresh()
    return selection_to_dict(selection)


@router.get("/evaluation", dependencies=[Depends(require_token)])
async def get_evaluation(request: Request) -> dict[str, object]:
    """Return the stored evaluation of the selected day, if any."""
    controller = _container(request).controller
    return {
        "day": controller.selected_day.isoformat(),
        "evaluation": evaluation_to_dict(controller.selected_evaluation),
    }


@router.post("/evaluation", dependencies=[Depends(require_token)])
async def evaluate_day(request: Request) -> dict[str, object]:
    """Run the AI evaluation for the selected day."""
    controller = _container(request).controller
    evaluation = await controller.evaluate_selected_day()
    return {
        "day": controller.selected_day.isoformat(),
        "evaluation": evaluation_to_dict(evaluation),
    }


@router.get("/progress", dependencies=[Depends(require_token)])
async def progress(request: Request) -> dict[str, object]:
    """Return the current twenty-day progress cycle."""
    snapshot = await _container(request).progress_service.snapshot()
    return progress_to_dict(snapshot)


@router.post("/progress/evaluation", dependencies=[Depends(require_token)])
async def evaluate_progress(request: Request) -> dict[str, object]:
    """Run the AI evaluation of an eligible progress cycle."""
    try:
        evaluation = await _container(request).progress_service.evaluate()
    except ProgressNotEligibleError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=str(exc)
        ) from exc
    return {"evaluation": progress_evaluation_to_dict(evaluation)}

@router.get("/profile", dependencies=[Depends(require_token)])
async def profile(request: Request) -> dict[str, object]:
    """Return the user's goals and settings."""
    repository = _container(request).controller.repository
    try:
        goals = await repository.fetch_user_goals()
        settings = await repository.fetch_user_settings()
    except Exception as exc:
        raise FetchError("Failed to load profile") from exc
    return {
        "goals": {**asdict(goals), "goal_description": goals.goal_description},
        "settings": asdict(settings),
    }


@router.get("/export.csv", dependencies=[Depends(require_token)])
async def export_csv(request: Request) -> Response:
    """Download every logged meal as CSV."""
    try:
        content = await _container(request).export_service.export_csv()
    except Exception as exc:
        raise FetchError("Failed to export meals") from exc
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="meals.csv"'},
    )
