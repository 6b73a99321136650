"""Shared fixtures for the test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
import pytest
from httpx import ASGITransport, AsyncClient

from sleeptracker.config import settings
from sleeptracker.main import app
from sleeptracker.tracker.file_store import FileStorage
from sleeptracker.tracker.models import Goal, SleepLog
from sleeptracker.tracker.repository import get_repository

NOW = datetime(2026, 2, 15, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Fake DB session (no real Postgres needed)
# ---------------------------------------------------------------------------

class FakeSession:
    """Minimal stand-in for AsyncSession used in SQL store tests."""

    def __init__(self, rows: list[dict[str, Any]] | None = None):
        self._rows = rows or []
        self.statements: list[tuple[str, dict[str, Any]]] = []
        self.commits = 0

    async def execute(self, stmt, params=None):
        self.statements.append((str(stmt), params or {}))
        return FakeResult(self._rows)

    async def commit(self):
        self.commits += 1

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass


class FakeResult:
    def __init__(self, rows: list[dict[str, Any]]):
        self._rows = rows
        self._keys = list(rows[0].keys()) if rows else []

    def keys(self):
        return self._keys

    def fetchall(self):
        return [tuple(r[k] for k in self._keys) for r in self._rows]

    def fetchone(self):
        rows = self.fetchall()
        return rows[0] if rows else None


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def storage(tmp_path):
    return FileStorage(tmp_path / "sleep_logs.json", tmp_path / "goals.json")


@pytest.fixture()
def override_repository(storage):
    """Override the FastAPI dependency so every request hits a temp-dir store."""
    async def _override():
        yield storage

    app.dependency_overrides[get_repository] = _override
    yield storage
    app.dependency_overrides.clear()


@pytest.fixture()
async def client(override_repository):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {settings.api_token}"}


def make_log(
    start: datetime,
    hours: float = 8.0,
    quality: int = 7,
    user_id: str = "u1",
    **extra: Any,
) -> SleepLog:
    """Helper to build a SleepLog starting at ``start`` and lasting ``hours``."""
    return SleepLog(
        user_id=user_id,
        start_time=start,
        end_time=start + timedelta(hours=hours),
        quality=quality,
        **extra,
    )


def make_goal(
    goal_type: str,
    value: str,
    user_id: str = "u1",
    created_at: datetime | None = None,
) -> Goal:
    return Goal(
        user_id=user_id,
        type=goal_type,
        value=value,
        created_at=created_at or NOW,
    )
