"""Tests for local and remote token validation."""

from __future__ import annotations

import httpx
import pytest
from fastapi import HTTPException

from sleeptracker import auth
from sleeptracker.config import settings


def _mock_client(handler):
    def _factory() -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _factory


@pytest.fixture()
def remote_env(monkeypatch):
    monkeypatch.setattr(settings, "app_env", "production")
    monkeypatch.setattr(settings, "auth_service_url", "http://auth.test/validate")


class TestLocal:
    def test_valid_token(self):
        user = auth.validate_token_local(settings.api_token)
        assert user is not None
        assert user.id == settings.demo_user_id

    def test_invalid_token(self):
        assert auth.validate_token_local("wrong") is None

    async def test_bearer_header_resolves_user(self):
        user = await auth.get_current_user(authorization=f"Bearer  {settings.api_token} ")
        assert user.name == settings.demo_user_name

    async def test_missing_header(self):
        with pytest.raises(HTTPException) as exc_info:
            await auth.get_current_user(authorization=None)
        assert exc_info.value.status_code == 401


class TestRemote:
    async def test_valid_token(self, remote_env, monkeypatch):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = request.content
            return httpx.Response(200, json={"id": "u42", "name": "Remote"})

        monkeypatch.setattr(auth, "_http_client", _mock_client(handler))
        user = await auth.get_current_user(authorization="Bearer abc")
        assert user.id == "u42"
        assert b'"token"' in seen["body"]

    async def test_rejected_token(self, remote_env, monkeypatch):
        monkeypatch.setattr(auth, "_http_client", _mock_client(lambda r: httpx.Response(403)))
        with pytest.raises(HTTPException) as exc_info:
            await auth.get_current_user(authorization="Bearer abc")
        assert exc_info.value.status_code == 401

    async def test_service_unreachable(self, remote_env, monkeypatch):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        monkeypatch.setattr(auth, "_http_client", _mock_client(handler))
        assert await auth.validate_token_remote("abc") is None

    async def test_bad_payload(self, remote_env, monkeypatch):
        monkeypatch.setattr(auth, "_http_client", _mock_client(lambda r: httpx.Response(200, json={"name": "x"})))
        assert await auth.validate_token_remote("abc") is None

    async def test_no_service_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "auth_service_url", None)
        assert await auth.validate_token_remote("abc") is None
