# src/trainerhub/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/trainerhub/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `TRAINERHUB_DATABASE_URL`, `TRAINERHUB_LOG_LEVEL`)
- an external YAML file via `TRAINERHUB_CONFIG_PATH`

Design rule:
- Tuning knobs (page sizes, notification texts) live in YAML, not hard-coded in business logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from trainerhub.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `trainerhub.config`."""
    text = resources.files("trainerhub.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "TrainerHub"
    log_level: str = "INFO"


class DatabaseSettings(BaseModel):
    url: str = "sqlite:///trainerhub.db"
    echo: bool = False


class SearchSettings(BaseModel):
    default_page_size: int = Field(50, ge=1)
    max_page_size: int = Field(100, ge=1)
    rank_matches_first: bool = True


class NotificationTemplate(BaseModel):
    subject: str
    body: str


class NotificationSettings(BaseModel):
    """Texts for system messages; `{training_title}` is substituted at send time."""

    accepted: NotificationTemplate = Field(
        default_factory=lambda: NotificationTemplate(
            subject="Request accepted: {training_title}",
            body="Your request for '{training_title}' has been accepted by the company.",
        )
    )
    declined: NotificationTemplate = Field(
        default_factory=lambda: NotificationTemplate(
            subject="Request declined: {training_title}",
            body="The company has chosen another trainer for '{training_title}'.",
        )
    )


class ApiSettings(BaseModel):
    cors_origins: list[str] = Field(default_factory=list)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    load_dotenv_if_present()
    data = dict(data)

    database_url = os.getenv("TRAINERHUB_DATABASE_URL")
    if database_url:
        data.setdefault("database", {})["url"] = database_url

    log_level = os.getenv("TRAINERHUB_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    cors = os.getenv("TRAINERHUB_CORS_ORIGINS")
    if cors:
        data.setdefault("api", {})["cors_origins"] = [s.strip() for s in cors.split(",") if s.strip()]

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("TRAINERHUB_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
