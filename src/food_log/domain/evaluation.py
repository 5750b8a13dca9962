"""Models for AI day and progress evaluations."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class DailyEvaluation(BaseModel):
    """Stored AI feedback for one day of meals."""

    day: date
    summary: str
    strengths: str = ""
    improvements: str = ""
    score: int | None = Field(default=None, ge=1, le=10)
    evaluated_at: datetime


class ProgressEvaluation(BaseModel):
    """Stored AI feedback on a twenty-day progress cycle."""

    cycle_start: date
    overall_progress: str
    strengths: str = ""
    improvements: str = ""
    score: int | None = Field(default=None, ge=1, le=10)
    active_days: int = Field(ge=0)
    evaluated_at: datetime
