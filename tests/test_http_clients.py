"""Tests for the OpenAI evaluation adapter."""

import asyncio
import json

import pytest

from food_log.adapters.openai_evaluation_client import OpenAIEvaluationClient
from food_log.services.evaluation import EVALUATION_SCHEMA


class _FakeResponses:
    def __init__(self, output_text: str) -> None:
        self.output_text = output_text
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return type("Resp", (), {"output_text": self.output_text})()


class _FakeOpenAI:
    def __init__(self, output_text: str) -> None:
        self.responses = _FakeResponses(output_text)
        self.closed = False

    async def close(self) -> None:
        self.closed = True


def _evaluate(
    client: OpenAIEvaluationClient, effort: str | None
) -> dict[str, object]:
    return asyncio.run(
        client.evaluate(
            model="gpt-5.2",
            reasoning_effort=effort,
            store=False,
            schema=EVALUATION_SCHEMA,
            prompt="Evaluate the day",
        )
    )


def test_openai_evaluation_client_parses_output() -> None:
    payload = {"summary": "Fine", "strengths": "", "improvements": "", "score": 6}
    fake = _FakeOpenAI(json.dumps(payload))
    client = OpenAIEvaluationClient(client=fake)

    result = _evaluate(client, "high")

    assert result == payload
    assert fake.responses.last_payload is not None
    assert fake.responses.last_payload["reasoning"] == {"effort": "high"}
    text_format = fake.responses.last_payload["text"]["format"]
    assert text_format["type"] == "json_schema"
    assert text_format["schema"] is EVALUATION_SCHEMA


def test_openai_evaluation_client_omits_empty_reasoning() -> None:
    fake = _FakeOpenAI(json.dumps({"summary": "Fine"}))

    _evaluate(OpenAIEvaluationClient(client=fake), None)

    assert fake.responses.last_payload is not None
    assert "reasoning" not in fake.responses.last_payload


def test_openai_evaluation_client_rejects_empty_output() -> None:
    client = OpenAIEvaluationClient(client=_FakeOpenAI(""))

    with pytest.raises(RuntimeError, match="empty response"):
        _evaluate(client, None)


def test_openai_evaluation_client_close() -> None:
    fake = _FakeOpenAI("{}")

    asyncio.run(OpenAIEvaluationClient(client=fake).close())

    assert fake.closed
