"""Tests for settings."""

import pytest
from pydantic import ValidationError

from food_log.config import Settings, is_valid_timezone


def test_timezone_defaults_to_utc(settings: Settings) -> None:
    assert settings.timezone == "UTC"
    assert settings.evaluation_retry_attempts == 1


def test_unknown_timezone_is_rejected() -> None:
    with pytest.raises(ValidationError, match="Unknown timezone"):
        Settings(
            supabase_url="https://example.supabase.co",
            supabase_service_key="service-key",
            user_id="00000000-0000-0000-0000-000000000001",
            api_token="api-token",
            openai_api_key="openai-key",
            timezone="Mars/Olympus_Mons",
        )


def test_is_valid_timezone() -> None:
    assert is_valid_timezone("Europe/Berlin")
    assert not is_valid_timezone("Not/AZone")
