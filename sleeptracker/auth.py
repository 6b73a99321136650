"""Bearer-token auth for tracker endpoints."""

import httpx
from fastapi import Header, HTTPException
from loguru import logger

from sleeptracker.config import settings
from sleeptracker.tracker.models import User


def _unauthorized() -> HTTPException:
    return HTTPException(status_code=401, detail="Unauthorized")


def _http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.auth_timeout_seconds)


def validate_token_local(token: str) -> User | None:
    """Development mode: a single demo user guarded by a static token."""
    if token == settings.api_token:
        return User(id=settings.demo_user_id, name=settings.demo_user_name)
    logger.warning("auth: invalid token")
    return None


async def validate_token_remote(token: str) -> User | None:
    """POST the token to the auth service; a 200 response carries the user."""
    if not settings.auth_service_url:
        logger.error("auth: AUTH_SERVICE_URL is not configured")
        return None

    try:
        async with _http_client() as client:
            resp = await client.post(settings.auth_service_url, json={"token": token})
    except httpx.HTTPError as exc:
        logger.error(f"auth: failed to call auth service: {exc}")
        return None

    if resp.status_code != 200:
        logger.warning(f"auth: auth service returned {resp.status_code}")
        return None

    try:
        return User.model_validate(resp.json())
    except ValueError as exc:
        logger.error(f"auth: failed to decode auth response: {exc}")
        return None


async def get_current_user(
    authorization: str | None = Header(default=None),
) -> User:
    """Resolve ``Authorization: Bearer <token>`` to a user or raise 401.

    Development checks the token locally; staging/production ask the remote
    auth service.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise _unauthorized()

    token = authorization[7:].strip()
    if settings.app_env == "development":
        user = validate_token_local(token)
    else:
        user = await validate_token_remote(token)

    if user is None:
        raise _unauthorized()
    return user
