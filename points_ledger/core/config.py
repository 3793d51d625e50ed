from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Flying Points Ledger"
    database_url: Optional[str] = None
    environment: str = "development"
    render: bool = Field(
        default=False,
        validation_alias=AliasChoices("render", "points_render"),
    )
    render_data_dir: Path = Path("/var/data")
    data_dir: Path = Path("data")
    log_level: str = "INFO"
    busy_timeout_seconds: float = 5.0
    conflict_retries: int = Field(default=1, ge=0)
    leaderboard_size: int = Field(default=10, ge=1)
    history_page_size: int = Field(default=10, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="POINTS_",
        extra="ignore",
    )

    @property
    def platform(self) -> str:
        return "Render" if self.render else "Local"

    def resolve_database_url(self) -> str:
        """Pick the store location for the current environment.

        An explicit ``database_url`` always wins. Otherwise the SQLite file
        lives on the persistent disk when running on Render, under
        ``data_dir`` in production, and in the working directory during
        local development.
        """
        if self.database_url:
            return self.database_url
        if self.render:
            path = self.render_data_dir / "points.db"
        elif self.environment == "production":
            path = self.data_dir / "points.db"
        else:
            path = Path("points.db")
        return f"sqlite:///{path}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
