"""Repository protocol and the FastAPI dependency that picks a backend."""

from __future__ import annotations

from functools import lru_cache
from typing import AsyncIterator, Protocol

from sleeptracker.config import settings
from sleeptracker.tracker.models import Goal, SleepLog


class GoalNotFoundError(LookupError):
    """The user has no stored goal (of the requested type)."""

    def __init__(self, user_id: str, goal_type: str | None = None):
        self.user_id = user_id
        self.goal_type = goal_type
        suffix = f" of type {goal_type!r}" if goal_type else ""
        super().__init__(f"No goal{suffix} set for user {user_id!r}")


class SleepRepository(Protocol):
    async def save_sleep_log(self, log: SleepLog) -> None: ...

    async def list_sleep_logs(self, user_id: str) -> list[SleepLog]:
        """All logs of ``user_id``, newest start_time first."""
        ...

    async def set_goal(self, goal: Goal) -> None: ...

    async def get_goal(self, user_id: str, goal_type: str | None = None) -> Goal:
        """Latest goal of the user (or the goal for ``goal_type``).

        Raises GoalNotFoundError when there is none.
        """
        ...


@lru_cache(maxsize=1)
def get_file_storage():
    from sleeptracker.tracker.file_store import FileStorage

    return FileStorage(settings.sleep_file, settings.goals_file)


async def get_repository() -> AsyncIterator[SleepRepository]:
    if settings.storage_backend == "file":
        yield get_file_storage()
        return

    from sleeptracker.db import get_sessionmaker
    from sleeptracker.tracker.sql_store import SqlStorage

    async with get_sessionmaker()() as session:
        yield SqlStorage(session)
