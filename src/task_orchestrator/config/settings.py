"""Application settings."""

from functools import lru_cache
import logging
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[3]


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "task-orchestrator"
    app_env: str = "dev"
    log_level: str = "INFO"
    max_concurrent_tasks: int = Field(default=4, ge=1)
    executor_mode: str = "echo"
    command_template: str = 'claude -p "{prompt}"'
    echo_delay_s: float = Field(default=0.0, ge=0.0)
    step_timeout_s: float = Field(default=300.0, ge=0.01)
    step_max_retries: int = Field(default=0, ge=0)
    step_retry_backoff_s: float = Field(default=0.0, ge=0.0)
    stalled_task_timeout_s: float = Field(default=900.0, ge=0.01)
    watchdog_interval_s: float = Field(default=30.0, ge=0.01)

    model_config = SettingsConfigDict(
        env_prefix="TASK_ORCHESTRATOR_",
        extra="ignore",
        env_file=(PROJECT_ROOT / ".env", PROJECT_ROOT / ".env.local"),
        env_file_encoding="utf-8",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
