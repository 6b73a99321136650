"""Tests for the SQL repository against a fake session."""

from __future__ import annotations

import json
from datetime import timedelta

import pytest

from sleeptracker.db import normalize_url
from sleeptracker.tracker.repository import GoalNotFoundError
from sleeptracker.tracker.sql_store import SCHEMA_STATEMENTS, SqlStorage, init_schema
from tests.conftest import NOW, FakeSession, make_goal, make_log


def _log_row(log, interruptions=None):
    row = log.model_dump()
    row["interruptions"] = interruptions if interruptions is not None else json.dumps(log.interruptions)
    return row


class TestSaveAndList:
    async def test_save_inserts_and_commits(self):
        session = FakeSession()
        log = make_log(NOW, interruptions=["noise", "dog"])
        await SqlStorage(session).save_sleep_log(log)

        sql, params = session.statements[0]
        assert sql.startswith("INSERT INTO sleep_logs")
        assert params["id"] == log.id
        assert json.loads(params["interruptions"]) == ["noise", "dog"]
        assert session.commits == 1

    async def test_list_orders_by_start_desc(self):
        newer = make_log(NOW - timedelta(days=1), interruptions=["noise"])
        older = make_log(NOW - timedelta(days=2))
        session = FakeSession([_log_row(newer), _log_row(older, interruptions=None)])

        logs = await SqlStorage(session).list_sleep_logs("u1")

        sql, params = session.statements[0]
        assert "ORDER BY start_time DESC" in sql
        assert params == {"user_id": "u1"}
        assert logs == [newer, older]

    async def test_list_handles_null_interruptions(self):
        log = make_log(NOW)
        row = _log_row(log)
        row["interruptions"] = None
        session = FakeSession([row])
        assert (await SqlStorage(session).list_sleep_logs("u1"))[0].interruptions == []

    async def test_list_empty(self):
        assert await SqlStorage(FakeSession()).list_sleep_logs("u1") == []


class TestGoals:
    async def test_set_goal_inserts(self):
        session = FakeSession()
        goal = make_goal("duration", "7h")
        await SqlStorage(session).set_goal(goal)
        sql, params = session.statements[0]
        assert sql.startswith("INSERT INTO goals")
        assert params["type"] == "duration"
        assert session.commits == 1

    async def test_get_latest_goal(self):
        goal = make_goal("quality", "> 6")
        session = FakeSession([goal.model_dump()])
        assert await SqlStorage(session).get_goal("u1") == goal
        sql, params = session.statements[0]
        assert "ORDER BY created_at DESC LIMIT 1" in sql
        assert "type" not in params

    async def test_get_goal_by_type(self):
        goal = make_goal("duration", "7h")
        session = FakeSession([goal.model_dump()])
        await SqlStorage(session).get_goal("u1", "duration")
        sql, params = session.statements[0]
        assert "AND type = :type" in sql
        assert params["type"] == "duration"

    async def test_missing_goal_raises(self):
        with pytest.raises(GoalNotFoundError):
            await SqlStorage(FakeSession()).get_goal("u1")


class TestSchema:
    async def test_init_schema_runs_every_statement(self):
        conn = FakeSession()
        await init_schema(conn)
        assert [sql for sql, _ in conn.statements] == list(SCHEMA_STATEMENTS)


class TestNormalizeUrl:
    def test_postgres_scheme(self):
        assert normalize_url("postgres://h/db") == "postgresql+asyncpg://h/db"

    def test_postgresql_scheme(self):
        assert normalize_url("postgresql://h/db") == "postgresql+asyncpg://h/db"

    def test_other_scheme_untouched(self):
        assert normalize_url("sqlite+aiosqlite:///x.db") == "sqlite+aiosqlite:///x.db"
