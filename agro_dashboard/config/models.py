"""Pydantic models describing dashboard configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_API_URL = "http://localhost:5001"
DEFAULT_POLL_INTERVAL = 2.0


class DashboardConfig(BaseModel):
    """Settings shared by the API client, the scrape monitor and exports."""

    api_url: str = DEFAULT_API_URL
    request_timeout: float = 15.0
    poll_interval: float = Field(
        default=DEFAULT_POLL_INTERVAL,
        description="Seconds between two scrape status polls.",
    )
    max_poll_duration: float | None = Field(
        default=None,
        description="Stop monitoring after this many seconds; null keeps polling until done.",
    )
    export_dir: Path = Field(default=Path("data/exports"))
    app_name: str = "espaceagro-announcements"
    export_format: Literal["csv", "json"] = "csv"
    scrape_enabled: bool = True

    @field_validator("api_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            return DEFAULT_API_URL
        if not text.startswith(("http://", "https://")):
            raise ValueError("api_url must start with http:// or https://")
        return text.rstrip("/")

    @field_validator("export_dir", mode="before")
    @classmethod
    def _coerce_dir(cls, value: Any) -> Path:
        return Path(value)

    @model_validator(mode="after")
    def _validate_durations(self) -> "DashboardConfig":
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")
        if self.max_poll_duration is not None and self.max_poll_duration <= 0:
            raise ValueError("max_poll_duration must be > 0 or null")
        if not self.app_name.strip():
            raise ValueError("app_name cannot be empty")
        return self

    def resolved_export_dir(self, base_dir: Path) -> Path:
        """Return export directory relative to the project home."""

        if not self.export_dir.is_absolute():
            return (base_dir / self.export_dir).resolve()
        return self.export_dir


__all__ = ["DEFAULT_API_URL", "DEFAULT_POLL_INTERVAL", "DashboardConfig"]
