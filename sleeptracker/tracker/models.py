"""Sleep tracker contract — Pydantic v2 models."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class GoalType(str, Enum):
    duration = "duration"
    consistency = "consistency"
    quality = "quality"


class User(BaseModel):
    id: str
    name: str = ""


class SleepLog(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    user_id: str
    start_time: datetime
    end_time: datetime
    quality: int = Field(ge=1, le=10)
    reason: str | None = None
    interruptions: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("start_time", "end_time", "created_at")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def _end_after_start(self) -> SleepLog:
        if self.end_time < self.start_time:
            raise ValueError("'end_time' must be after 'start_time'")
        return self

    @property
    def duration_hours(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 3600


class Goal(BaseModel):
    """A stored goal. ``type`` stays a plain string so legacy rows still load."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    user_id: str
    type: str
    value: str
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("created_at")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class DayVerdict(BaseModel):
    date: date
    met: bool


class GoalProgress(BaseModel):
    goal: Goal
    progress: list[DayVerdict] = Field(default_factory=list)
    met_days: int = 0
    total_days: int = 0


class SleepStats(BaseModel):
    average_quality: float = 0.0
    trend: list[int] = Field(default_factory=list)


class Recommendation(BaseModel):
    recommendation: str
    reason: str
    action: str
    source: str


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class SleepLogCreate(BaseModel):
    start_time: datetime
    end_time: datetime
    quality: int = Field(ge=1, le=10)
    reason: str | None = None
    interruptions: list[str] = Field(default_factory=list)

    @field_validator("start_time", "end_time")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @field_validator("interruptions")
    @classmethod
    def _non_empty_interruptions(cls, value: list[str]) -> list[str]:
        if any(not item.strip() for item in value):
            raise ValueError("interruptions must not contain empty entries")
        return value

    @model_validator(mode="after")
    def _end_after_start(self) -> SleepLogCreate:
        if self.end_time < self.start_time:
            raise ValueError("'end_time' must be after 'start_time'")
        return self


class GoalCreate(BaseModel):
    type: GoalType
    value: str = Field(min_length=1)

    @field_validator("value")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Goal value required")
        return value
