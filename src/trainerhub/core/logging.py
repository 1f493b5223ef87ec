"""
Logging setup for the API process and the CLI.

The packaged `config/logging.yaml` sends everything to one console handler and keeps the
`sqlalchemy.engine` logger at WARNING so SQL statements don't drown out negotiation logs.
Settings then adjust it at runtime:
- `app.log_level` (or `TRAINERHUB_LOG_LEVEL`) sets the root and handler levels.
- `database.echo: true` raises `sqlalchemy.engine` to INFO, i.e. statement logging.
"""

from __future__ import annotations

import copy
import logging.config
from typing import Any

from trainerhub.config.settings import Settings, get_logging_config, get_settings


def build_logging_config(settings: Settings) -> dict[str, Any]:
    """Return the dictConfig payload for `settings` (the cached YAML stays untouched)."""
    config = copy.deepcopy(get_logging_config())

    level = settings.app.log_level.upper()
    config.setdefault("root", {})["level"] = level
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = level

    if settings.database.echo:
        config.setdefault("loggers", {}).setdefault("sqlalchemy.engine", {})["level"] = "INFO"
    return config


def configure_logging() -> None:
    logging.config.dictConfig(build_logging_config(get_settings()))
