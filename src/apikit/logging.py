"""
Logging helpers.

All loggers live under the ``apikit`` namespace so applications can tune the
whole package with one call. ``setup_logging`` is optional: without it the
package emits through whatever handlers the application configured.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from rich.logging import RichHandler

ROOT_LOGGER = "apikit"


class JSONFormatter(logging.Formatter):
    """Render records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger inside the package namespace.

    Args:
        name: Usually ``__name__`` of the calling module.
    """
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(level: str | None = None, json_format: bool | None = None) -> logging.Logger:
    """
    Attach a handler to the package root logger.

    Args:
        level: Log level name. Defaults to ``settings.log_level``.
        json_format: JSON lines instead of rich console output.
            Defaults to ``settings.log_json``.

    Returns:
        The configured package root logger.
    """
    from apikit.config import get_settings

    settings = get_settings()
    level = level or settings.log_level
    json_format = settings.log_json if json_format is None else json_format

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    if json_format:
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
    else:
        handler = RichHandler(show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


__all__ = ["JSONFormatter", "ROOT_LOGGER", "get_logger", "setup_logging"]
