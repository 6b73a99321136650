from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_env: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    log_file: str | None = None

    # Storage: "file" keeps JSON on disk, "sql" goes through database_url
    storage_backend: Literal["file", "sql"] = "file"
    database_url: str | None = None
    sleep_file: str = "data/sleep_logs.json"
    goals_file: str = "data/goals.json"

    # Auth: development checks api_token locally, other envs ask auth_service_url
    api_token: str = "MOCK-TOKEN"
    demo_user_id: str = "u1"
    demo_user_name: str = "Demo User"
    auth_service_url: str | None = None
    auth_timeout_seconds: float = 5.0

    lookback_days: int = 7  # Trailing window for stats and goal progress

    host: str = "0.0.0.0"
    port: int = 8088

    model_config = {"env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _check_storage(self) -> "Settings":
        if self.storage_backend == "sql" and not self.database_url:
            raise ValueError("DATABASE_URL is required when STORAGE_BACKEND=sql")
        if self.storage_backend == "file" and (not self.sleep_file or not self.goals_file):
            raise ValueError("File storage requires SLEEP_FILE and GOALS_FILE to be set")
        return self


settings = Settings()
