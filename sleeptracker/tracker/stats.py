"""Rolling sleep statistics."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sleeptracker.tracker.goals import DEFAULT_LOOKBACK_DAYS, lookback_cutoff
from sleeptracker.tracker.models import Recommendation, SleepLog, SleepStats

DEFAULT_RECOMMENDATION = Recommendation(
    recommendation="Try to maintain a consistent sleep schedule.",
    reason="Regular sleep improves quality.",
    action="Go to bed and wake up at the same time every day.",
    source="MockGPT",
)


def compute_sleep_stats(
    logs: Sequence[SleepLog],
    now: datetime,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> SleepStats:
    """Average quality and quality trend of logs started strictly after the cutoff.

    Unlike goal progress this scans every log, so input order only affects
    the order of ``trend``.
    """
    cutoff = lookback_cutoff(now, lookback_days)
    trend = [log.quality for log in logs if log.start_time > cutoff]
    if not trend:
        return SleepStats(average_quality=0.0, trend=[])
    return SleepStats(average_quality=sum(trend) / len(trend), trend=trend)


def recommend() -> Recommendation:
    return DEFAULT_RECOMMENDATION
