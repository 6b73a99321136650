"""Goal HTTP router — set a goal, report progress against recent logs."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger

from sleeptracker.auth import get_current_user
from sleeptracker.config import settings
from sleeptracker.tracker.goals import evaluate_goal_progress
from sleeptracker.tracker.models import Goal, GoalCreate, GoalProgress, GoalType, User
from sleeptracker.tracker.repository import GoalNotFoundError, SleepRepository, get_repository
from sleeptracker.tracker.router import STORAGE_ERRORS, load_logs

router = APIRouter(prefix="/api/goals", tags=["goals"])


@router.post("", response_model=Goal, status_code=201)
async def create_goal(
    body: GoalCreate,
    user: User = Depends(get_current_user),
    repo: SleepRepository = Depends(get_repository),
) -> Goal:
    goal = Goal(user_id=user.id, type=body.type.value, value=body.value)
    try:
        await repo.set_goal(goal)
    except STORAGE_ERRORS:
        logger.exception(f"Failed to save goal for user={user.id}")
        raise HTTPException(status_code=500, detail="Failed to save goal")
    logger.info(f"Set {goal.type} goal {goal.value!r} for user={user.id}")
    return goal


@router.get("/progress", response_model=GoalProgress)
async def goal_progress(
    user: User = Depends(get_current_user),
    repo: SleepRepository = Depends(get_repository),
    goal_type: GoalType | None = Query(default=None, alias="type", description="Goal type (default: latest goal)"),
) -> GoalProgress:
    try:
        goal = await repo.get_goal(user.id, goal_type.value if goal_type else None)
    except GoalNotFoundError as exc:
        logger.info(str(exc))
        raise HTTPException(status_code=404, detail="No goal set for user")
    except STORAGE_ERRORS:
        logger.exception(f"Failed to fetch goal for user={user.id}")
        raise HTTPException(status_code=500, detail="Failed to fetch goal")

    logs = await load_logs(repo, user, "goal progress")
    return evaluate_goal_progress(goal, logs, datetime.now(timezone.utc), settings.lookback_days)
