"""Configuration loading helpers for the dashboard."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from .models import DashboardConfig

CONFIG_FILENAME = "dashboard_config.yaml"
API_URL_ENV = "AGRO_DASHBOARD_API_URL"
ENVIRONMENT_ENV = "AGRO_DASHBOARD_ENV"


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None
    exports_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get("AGRO_DASHBOARD_HOME")
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path(__file__).resolve().parents[2]).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.exports_dir = (self.data_dir / "exports").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.exports_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def config_path(self) -> Path:
        return self.data_dir / CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO, env overrides and validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._cache: DashboardConfig | None = None

    def load_config(self) -> DashboardConfig:
        if self._cache is not None:
            return self._cache
        path = self.locator.config_path()
        if path.exists():
            config = DashboardConfig.model_validate(_read_file(path))
        else:
            config = DashboardConfig()
            self.save_config(config)
        config = self._apply_environment(config)
        self._cache = config
        return config

    def save_config(self, config: DashboardConfig) -> None:
        path = self.locator.config_path()
        _write_file(path, config.model_dump(mode="json"))
        self._cache = None

    def export_dir(self) -> Path:
        return self.load_config().resolved_export_dir(self.locator.project_root)

    @staticmethod
    def _apply_environment(config: DashboardConfig) -> DashboardConfig:
        overrides: dict = {}
        api_url = os.environ.get(API_URL_ENV)
        if api_url:
            overrides["api_url"] = api_url
        if os.environ.get(ENVIRONMENT_ENV, "").strip().lower() == "production":
            overrides["scrape_enabled"] = False
        if not overrides:
            return config
        payload = config.model_dump()
        payload.update(overrides)
        return DashboardConfig.model_validate(payload)


__all__ = ["API_URL_ENV", "CONFIG_FILENAME", "ConfigLocator", "ConfigRepository", "ENVIRONMENT_ENV"]
