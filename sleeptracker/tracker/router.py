"""Sleep log HTTP router — create, list, stats, recommendations."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from sleeptracker.auth import get_current_user
from sleeptracker.config import settings
from sleeptracker.tracker import stats
from sleeptracker.tracker.models import Recommendation, SleepLog, SleepLogCreate, SleepStats, User
from sleeptracker.tracker.repository import SleepRepository, get_repository

router = APIRouter(prefix="/sleep", tags=["sleep"])

STORAGE_ERRORS = (OSError, SQLAlchemyError)


async def load_logs(repo: SleepRepository, user: User, action: str) -> list[SleepLog]:
    try:
        return await repo.list_sleep_logs(user.id)
    except STORAGE_ERRORS:
        logger.exception(f"Failed to fetch logs for {action} (user={user.id})")
        raise HTTPException(status_code=500, detail=f"Failed to fetch logs for {action}")


@router.post("", response_model=SleepLog, status_code=201)
async def create_sleep_log(
    body: SleepLogCreate,
    user: User = Depends(get_current_user),
    repo: SleepRepository = Depends(get_repository),
) -> SleepLog:
    log = SleepLog(user_id=user.id, **body.model_dump())
    try:
        await repo.save_sleep_log(log)
    except STORAGE_ERRORS:
        logger.exception(f"Failed to save sleep log for user={user.id}")
        raise HTTPException(status_code=500, detail="Failed to save log")
    logger.info(f"Saved sleep log {log.id} for user={user.id}")
    return log


@router.get("", response_model=list[SleepLog])
async def list_sleep_logs(
    user: User = Depends(get_current_user),
    repo: SleepRepository = Depends(get_repository),
) -> list[SleepLog]:
    logs = await load_logs(repo, user, "listing")
    return sorted(logs, key=lambda log: log.start_time, reverse=True)


@router.get("/stats", response_model=SleepStats)
async def sleep_stats(
    user: User = Depends(get_current_user),
    repo: SleepRepository = Depends(get_repository),
) -> SleepStats:
    logs = await load_logs(repo, user, "stats")
    return stats.compute_sleep_stats(logs, datetime.now(timezone.utc), settings.lookback_days)


@router.get("/recommendations", response_model=Recommendation)
async def sleep_recommendations(
    _: User = Depends(get_current_user),
) -> Recommendation:
    return stats.recommend()
