from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from loguru import logger

from sleeptracker.config import settings
from sleeptracker.log import setup_logging
from sleeptracker.tracker.goals_router import router as goals_router
from sleeptracker.tracker.router import router as sleep_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level, settings.log_file)
    logger.info(f"Starting SleepTracker (env={settings.app_env}, storage={settings.storage_backend})")
    if settings.storage_backend == "sql":
        from sleeptracker.db import get_engine
        from sleeptracker.tracker.sql_store import init_schema

        async with get_engine().begin() as conn:
            await init_schema(conn)
    yield
    if settings.storage_backend == "sql":
        from sleeptracker.db import get_engine

        await get_engine().dispose()


app = FastAPI(title="SleepTracker", version="0.1.0", lifespan=lifespan)
app.include_router(sleep_router)
app.include_router(goals_router)


@app.get("/")
async def root() -> dict:
    return {
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "sleep": {
            "logs": "/sleep",
            "stats": "/sleep/stats",
            "recommendations": "/sleep/recommendations",
        },
        "goals": {
            "create": "/api/goals",
            "progress": "/api/goals/progress",
        },
    }


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


def run() -> None:
    uvicorn.run("sleeptracker.main:app", host=settings.host, port=settings.port)
