"""JSON-file repository.

Two files, each a JSON array: sleep logs and goals. Everything is held in
memory behind a lock. Every mutation first rewrites the affected file
atomically (temp file + fsync + rename) in a worker thread, and only then
lands in memory, so a failed write leaves nothing behind. Goals are kept one per
(user, type); setting a goal of an existing type replaces it.
"""

from __future__ import annotations

import asyncio
import json
import os
import threading
from pathlib import Path
from typing import Any

from fastapi.concurrency import run_in_threadpool
from loguru import logger
from pydantic import TypeAdapter

from sleeptracker.tracker.models import Goal, SleepLog
from sleeptracker.tracker.repository import GoalNotFoundError

_LOGS_ADAPTER = TypeAdapter(list[SleepLog])
_GOALS_ADAPTER = TypeAdapter(list[Goal])


def _read_json_array(path: Path) -> Any:
    """Missing or empty files read as an empty list."""
    if not path.exists():
        return []
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return []
    return json.loads(text)


def atomic_write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    try:
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


class FileStorage:
    def __init__(self, sleep_file: str | Path, goals_file: str | Path):
        self.sleep_file = Path(sleep_file)
        self.goals_file = Path(goals_file)
        self._lock = threading.RLock()
        self._write_lock = asyncio.Lock()
        self._logs_by_user: dict[str, list[SleepLog]] = {}
        self._goals: dict[str, dict[str, Goal]] = {}
        self._load()

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    def _load(self) -> None:
        try:
            logs = _LOGS_ADAPTER.validate_python(_read_json_array(self.sleep_file))
            goals = _GOALS_ADAPTER.validate_python(_read_json_array(self.goals_file))
        except (OSError, ValueError) as exc:
            logger.error(f"storage: failed to load data files: {exc}")
            raise

        with self._lock:
            for log in logs:
                self._logs_by_user.setdefault(log.user_id, []).append(log)
            for user_logs in self._logs_by_user.values():
                user_logs.sort(key=lambda log: log.start_time, reverse=True)
            for goal in goals:
                self._goals.setdefault(goal.user_id, {})[goal.type] = goal

        logger.info(f"storage: loaded {len(logs)} sleep log(s) and {len(goals)} goal(s)")

    async def _write(self, path: Path, payload: list[dict[str, Any]]) -> None:
        try:
            await run_in_threadpool(atomic_write_json, path, payload)
        except OSError as exc:
            logger.error(f"storage: failed to write {path}: {exc}")
            raise

    # ------------------------------------------------------------------
    # Sleep logs
    # ------------------------------------------------------------------

    async def save_sleep_log(self, log: SleepLog) -> None:
        # Staged copy goes to disk first; memory only changes once the write succeeded
        async with self._write_lock:
            with self._lock:
                user_logs = list(self._logs_by_user.get(log.user_id, []))
                index = next(
                    (i for i, existing in enumerate(user_logs) if existing.start_time < log.start_time),
                    len(user_logs),
                )
                user_logs.insert(index, log)
                staged = {**self._logs_by_user, log.user_id: user_logs}

            payload = [entry.model_dump(mode="json") for entries in staged.values() for entry in entries]
            await self._write(self.sleep_file, payload)

            with self._lock:
                self._logs_by_user[log.user_id] = user_logs

    async def list_sleep_logs(self, user_id: str) -> list[SleepLog]:
        with self._lock:
            return list(self._logs_by_user.get(user_id, []))

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    async def set_goal(self, goal: Goal) -> None:
        async with self._write_lock:
            with self._lock:
                by_type = {**self._goals.get(goal.user_id, {}), goal.type: goal}
                staged = {**self._goals, goal.user_id: by_type}

            payload = [entry.model_dump(mode="json") for goals in staged.values() for entry in goals.values()]
            await self._write(self.goals_file, payload)

            with self._lock:
                self._goals[goal.user_id] = by_type

    async def get_goal(self, user_id: str, goal_type: str | None = None) -> Goal:
        with self._lock:
            by_type = self._goals.get(user_id) or {}
            if goal_type is not None:
                goal = by_type.get(goal_type)
                if goal is None:
                    raise GoalNotFoundError(user_id, goal_type)
                return goal
            if not by_type:
                raise GoalNotFoundError(user_id)
            return max(by_type.values(), key=lambda g: g.created_at)
