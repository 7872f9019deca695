"""
Logging configuration.

The packaged `src/woundwise/config/logging.yaml` is applied via `dictConfig`, with
levels taken from settings:
- `app.log_level` (or `WOUNDWISE_LOG_LEVEL`) for the root logger and its handlers
- `app.http_log_level` for the HTTP client libraries, which log every request at INFO
"""

from __future__ import annotations

import copy
import logging.config

from woundwise.config.settings import get_logging_config, get_settings

HTTP_CLIENT_LOGGERS = ("httpx", "httpcore")


def configure_logging() -> None:
    """Configure the Python logging system based on packaged YAML config + settings."""
    app = get_settings().app
    config = copy.deepcopy(get_logging_config())

    level = app.log_level.upper()
    config.setdefault("root", {})["level"] = level
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict):
            handler["level"] = level

    loggers = config.setdefault("loggers", {})
    for name in HTTP_CLIENT_LOGGERS:
        loggers.setdefault(name, {})["level"] = app.http_log_level.upper()

    logging.config.dictConfig(config)
