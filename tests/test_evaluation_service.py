"""Tests for the daily evaluation service."""

import asyncio
from datetime import date

import pytest
from pydantic import ValidationError

from food_log.domain.goals import NutritionThresholds, UserGoals
from food_log.domain.summaries import DailySummary
from food_log.services.evaluation import DailyEvaluationService, build_prompt
from tests.conftest import (
    FakeEvaluationClient,
    InMemoryEvaluationRepository,
    make_meal,
)

DAY = date(2024, 5, 15)
THRESHOLDS = NutritionThresholds.from_goals(UserGoals())


def test_evaluate_persists_validated_result(
    evaluation_service: DailyEvaluationService,
    evaluation_repository: InMemoryEvaluationRepository,
) -> None:
    meals = [make_meal(DAY, 600.0, name="Oats")]

    evaluation = asyncio.run(
        evaluation_service.evaluate(
            DAY, DailySummary.from_meals(DAY, meals), meals, THRESHOLDS
        )
    )

    assert evaluation.day == DAY
    assert evaluation.summary == "Balanced day."
    assert evaluation.evaluated_at.tzinfo is not None
    assert asyncio.run(evaluation_service.load(DAY)) == evaluation
    assert evaluation_repository.evaluations[DAY] == evaluation


def test_evaluate_retries_once(
    evaluation_service: DailyEvaluationService,
    evaluation_client: FakeEvaluationClient,
) -> None:
    evaluation_client.failures = 1

    evaluation = asyncio.run(
        evaluation_service.evaluate(DAY, DailySummary.empty(DAY), [], THRESHOLDS)
    )

    assert evaluation.score == 7
    assert len(evaluation_client.prompts) == 2


def test_evaluate_gives_up_after_retries(
    evaluation_service: DailyEvaluationService,
    evaluation_client: FakeEvaluationClient,
    evaluation_repository: InMemoryEvaluationRepository,
) -> None:
    evaluation_client.failures = 2

    with pytest.raises(RuntimeError, match="model unavailable"):
        asyncio.run(
            evaluation_service.evaluate(DAY, DailySummary.empty(DAY), [], THRESHOLDS)
        )

    assert evaluation_repository.evaluations == {}


def test_out_of_range_score_is_rejected(
    evaluation_service: DailyEvaluationService,
    evaluation_client: FakeEvaluationClient,
) -> None:
    evaluation_client.payload = {**evaluation_client.payload, "score": 11}

    with pytest.raises(ValidationError):
        asyncio.run(
            evaluation_service.evaluate(DAY, DailySummary.empty(DAY), [], THRESHOLDS)
        )


def test_discard_deletes_stored_evaluation(
    evaluation_service: DailyEvaluationService,
    evaluation_repository: InMemoryEvaluationRepository,
) -> None:
    asyncio.run(
        evaluation_service.evaluate(DAY, DailySummary.empty(DAY), [], THRESHOLDS)
    )
    asyncio.run(evaluation_service.discard(DAY))

    assert evaluation_repository.deleted == [DAY]
    assert asyncio.run(evaluation_service.load(DAY)) is None


def test_prompt_lists_meals_totals_and_flags() -> None:
    meals = [make_meal(DAY, 900.0, name="Burger", hour=13, fiber_g=2.0)]

    prompt = build_prompt(DAY, DailySummary.from_meals(DAY, meals), meals, THRESHOLDS)

    assert "2024-05-15" in prompt
    assert "900 kcal" in prompt
    assert "- 13:00 Burger (burger)" in prompt
    assert "low_fiber" in prompt


def test_prompt_for_empty_day() -> None:
    prompt = build_prompt(DAY, DailySummary.empty(DAY), [], THRESHOLDS)

    assert "- No meals" in prompt
    assert "Flags: none." in prompt
