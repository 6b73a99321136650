"""Goal progress engine — pure functions, never raises on bad goal values.

A goal's free-text value is parsed once into a typed spec, the newest-first
log history is cut down to the lookback window, and every log in the window
gets a met / not-met verdict for its day.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Sequence, Union

from loguru import logger

from sleeptracker.tracker.models import DayVerdict, Goal, GoalProgress, GoalType, SleepLog, as_utc

DEFAULT_LOOKBACK_DAYS = 7

# A consistency hour of 0 means "no usable hour", not midnight
CONSISTENCY_FALLBACK_HOUR = 23

_FLOAT_PREFIX = re.compile(
    r"\s*([+-]?(?:inf|nan|\d+(?:\.\d*)?(?:e[+-]?\d+)?|\.\d+(?:e[+-]?\d+)?))",
    re.IGNORECASE,
)
# The literal keyword must come first; only the number skips leading spaces
_BEFORE_HOUR = re.compile(r"before\s*([+-]?\d+)")
_GREATER_THAN = re.compile(r">\s*([+-]?\d+)")

# Integers must fit a signed 64-bit value, larger ones count as unparsable
_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1


# ---------------------------------------------------------------------------
# Goal specs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DurationGoal:
    hours: float


@dataclass(frozen=True, slots=True)
class ConsistencyGoal:
    hour: int


@dataclass(frozen=True, slots=True)
class QualityGoal:
    threshold: int


@dataclass(frozen=True, slots=True)
class UnsupportedGoal:
    goal_type: str


GoalSpec = Union[DurationGoal, ConsistencyGoal, QualityGoal, UnsupportedGoal]


def _match_number(pattern: re.Pattern[str], value: str) -> str | None:
    match = pattern.match(value)
    return match.group(1) if match else None


def _parse_int(pattern: re.Pattern[str], value: str) -> int | None:
    raw = _match_number(pattern, value)
    if raw is None:
        return None
    number = int(raw)
    if not _INT_MIN <= number <= _INT_MAX:
        return None
    return number


def _parse_float(value: str) -> float | None:
    raw = _match_number(_FLOAT_PREFIX, value)
    if raw is None:
        return None
    number = float(raw)
    # Finite digits that overflow to infinity are a failed parse; a literal "inf" is not
    if math.isinf(number) and "inf" not in raw.lower():
        return None
    return number


def parse_duration(value: str) -> DurationGoal:
    """``"7.5h"`` → 7.5 hours. No numeric prefix means 0.0 (always met)."""
    hours = _parse_float(value)
    if hours is None:
        logger.warning(f"Unparsable duration goal value {value!r}, defaulting to 0h")
        return DurationGoal(hours=0.0)
    return DurationGoal(hours=hours)


def parse_consistency(value: str) -> ConsistencyGoal:
    """``"before 23"`` → hour 23. Unparsable or zero hours become 23."""
    hour = _parse_int(_BEFORE_HOUR, value)
    if hour is None:
        logger.warning(f"Unparsable consistency goal value {value!r}, defaulting to before {CONSISTENCY_FALLBACK_HOUR}")
        hour = 0
    if hour == 0:
        hour = CONSISTENCY_FALLBACK_HOUR
    return ConsistencyGoal(hour=hour)


def parse_quality(value: str) -> QualityGoal:
    """``"> 6"`` → threshold 6. Unparsable values mean threshold 0."""
    threshold = _parse_int(_GREATER_THAN, value)
    if threshold is None:
        logger.warning(f"Unparsable quality goal value {value!r}, defaulting to > 0")
        return QualityGoal(threshold=0)
    return QualityGoal(threshold=threshold)


def parse_goal(goal_type: str, value: str) -> GoalSpec:
    if goal_type == GoalType.duration.value:
        return parse_duration(value)
    if goal_type == GoalType.consistency.value:
        return parse_consistency(value)
    if goal_type == GoalType.quality.value:
        return parse_quality(value)
    return UnsupportedGoal(goal_type=goal_type)


# ---------------------------------------------------------------------------
# Window selection
# ---------------------------------------------------------------------------


def lookback_cutoff(now: datetime, lookback_days: int = DEFAULT_LOOKBACK_DAYS) -> datetime:
    return as_utc(now) - timedelta(days=lookback_days)


def select_window(logs: Sequence[SleepLog], cutoff: datetime) -> list[SleepLog]:
    """Return the leading run of logs that started at or after ``cutoff``.

    ``logs`` must be sorted newest-first by start_time. Scanning stops at the
    first log older than the cutoff; anything after it is never looked at.
    """
    window: list[SleepLog] = []
    for log in logs:
        if log.start_time < cutoff:
            break
        window.append(log)
    return window


# ---------------------------------------------------------------------------
# Compliance
# ---------------------------------------------------------------------------


def is_met(spec: GoalSpec, log: SleepLog) -> bool:
    if isinstance(spec, DurationGoal):
        return log.duration_hours >= spec.hours
    if isinstance(spec, ConsistencyGoal):
        return log.start_time.hour < spec.hour
    if isinstance(spec, QualityGoal):
        return log.quality > spec.threshold
    return False


def day_verdict(spec: GoalSpec, log: SleepLog) -> DayVerdict:
    return DayVerdict(date=log.start_time.date(), met=is_met(spec, log))


def aggregate(goal: Goal, verdicts: Sequence[DayVerdict]) -> GoalProgress:
    """Fold verdicts into a report, keeping their order."""
    return GoalProgress(
        goal=goal,
        progress=list(verdicts),
        met_days=sum(1 for v in verdicts if v.met),
        total_days=len(verdicts),
    )


def evaluate_goal_progress(
    goal: Goal,
    logs: Sequence[SleepLog],
    now: datetime,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> GoalProgress:
    """Day-by-day compliance of ``goal`` over the trailing window ending at ``now``.

    ``logs`` must belong to the goal's user and be sorted newest-first.
    """
    spec = parse_goal(goal.type, goal.value)
    window = select_window(logs, lookback_cutoff(now, lookback_days))
    return aggregate(goal, [day_verdict(spec, log) for log in window])
