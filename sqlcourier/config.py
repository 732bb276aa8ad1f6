"""Application settings loaded from environment variables."""

import os
import tempfile
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """sqlcourier configuration. Values come from ``SQLCOURIER_*`` env vars."""

    # Definitions (databases.yaml, destinations.yaml, tasks.yaml)
    config_dir: Path = Field(default=Path.home() / ".sqlcourier")

    # Transient artifacts written before delivery
    scratch_dir: Path = Field(default=Path(tempfile.gettempdir()) / "sqlcourier")

    # Timeouts (seconds)
    task_timeout: float = Field(default=30.0)
    webhook_timeout: float = Field(default=30.0)
    db_connect_timeout: int = Field(default=10)

    # Dry-run
    dry_run_row_limit: int = Field(default=5, ge=1)

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="SQLCOURIER_", env_file=_env_file(), env_file_encoding="utf-8"
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)


settings = Settings()
