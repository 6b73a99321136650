"""SQL repository — async access to sleep_logs and goals via raw statements.

interruptions is stored as JSON text so the same schema works on Postgres
and SQLite. Goals keep their full history; "current" is the newest row.
"""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession

from sleeptracker.tracker.models import Goal, SleepLog
from sleeptracker.tracker.repository import GoalNotFoundError

SCHEMA_STATEMENTS = (
    "CREATE TABLE IF NOT EXISTS sleep_logs ("
    "id VARCHAR(64) PRIMARY KEY, "
    "user_id VARCHAR(64) NOT NULL, "
    "start_time TIMESTAMP WITH TIME ZONE NOT NULL, "
    "end_time TIMESTAMP WITH TIME ZONE NOT NULL, "
    "quality INTEGER NOT NULL, "
    "reason TEXT, "
    "interruptions TEXT, "
    "created_at TIMESTAMP WITH TIME ZONE NOT NULL)",
    "CREATE INDEX IF NOT EXISTS ix_sleep_logs_user_start ON sleep_logs (user_id, start_time)",
    "CREATE TABLE IF NOT EXISTS goals ("
    "id VARCHAR(64) PRIMARY KEY, "
    "user_id VARCHAR(64) NOT NULL, "
    "type VARCHAR(32) NOT NULL, "
    "value TEXT NOT NULL, "
    "created_at TIMESTAMP WITH TIME ZONE NOT NULL)",
    "CREATE INDEX IF NOT EXISTS ix_goals_user_created ON goals (user_id, created_at)",
)

_LOG_COLUMNS = "id, user_id, start_time, end_time, quality, reason, interruptions, created_at"
_GOAL_COLUMNS = "id, user_id, type, value, created_at"


async def init_schema(conn: AsyncConnection) -> None:
    for statement in SCHEMA_STATEMENTS:
        await conn.execute(text(statement))


def _log_from_row(row: dict[str, Any]) -> SleepLog:
    raw = row.get("interruptions")
    interruptions = json.loads(raw) if isinstance(raw, str) and raw else (raw or [])
    return SleepLog(
        id=row["id"],
        user_id=row["user_id"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        quality=row["quality"],
        reason=row.get("reason") or None,
        interruptions=interruptions,
        created_at=row["created_at"],
    )


class SqlStorage:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def save_sleep_log(self, log: SleepLog) -> None:
        await self.session.execute(
            text(
                f"INSERT INTO sleep_logs ({_LOG_COLUMNS}) VALUES "
                "(:id, :user_id, :start_time, :end_time, :quality, :reason, :interruptions, :created_at)"
            ),
            {
                "id": log.id,
                "user_id": log.user_id,
                "start_time": log.start_time,
                "end_time": log.end_time,
                "quality": log.quality,
                "reason": log.reason,
                "interruptions": json.dumps(log.interruptions),
                "created_at": log.created_at,
            },
        )
        await self.session.commit()

    async def list_sleep_logs(self, user_id: str) -> list[SleepLog]:
        result = await self.session.execute(
            text(f"SELECT {_LOG_COLUMNS} FROM sleep_logs WHERE user_id = :user_id ORDER BY start_time DESC"),
            {"user_id": user_id},
        )
        columns = list(result.keys())
        return [_log_from_row(dict(zip(columns, r))) for r in result.fetchall()]

    async def set_goal(self, goal: Goal) -> None:
        await self.session.execute(
            text(f"INSERT INTO goals ({_GOAL_COLUMNS}) VALUES (:id, :user_id, :type, :value, :created_at)"),
            goal.model_dump(),
        )
        await self.session.commit()

    async def get_goal(self, user_id: str, goal_type: str | None = None) -> Goal:
        query = f"SELECT {_GOAL_COLUMNS} FROM goals WHERE user_id = :user_id"
        params: dict[str, Any] = {"user_id": user_id}
        if goal_type is not None:
            query += " AND type = :type"
            params["type"] = goal_type
        query += " ORDER BY created_at DESC LIMIT 1"

        result = await self.session.execute(text(query), params)
        row = result.fetchone()
        if row is None:
            raise GoalNotFoundError(user_id, goal_type)
        return Goal(**dict(zip(result.keys(), row)))
