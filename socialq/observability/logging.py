"""
Logging setup for SocialQ modules.

All module loggers live under the "socialq" package logger, which owns the
only handler; the root logger (and uvicorn's) is left alone.

Environment:
    SOCIALQ_LOG_LEVEL: DEBUG | INFO | WARNING | ERROR (default INFO)
    SOCIALQ_LOG_FORMAT: "text" (default) or "json" for one JSON object per line
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from typing import Final

PACKAGE_LOGGER: Final[str] = "socialq"
_TEXT_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JsonLineFormatter(logging.Formatter):
    """One compact JSON object per record: ts, level, logger, msg (+ exc)."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=str)


def _resolve_level() -> int:
    level_name = os.getenv("SOCIALQ_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(level_name)
    return level if isinstance(level, int) else logging.INFO


def _build_formatter() -> logging.Formatter:
    if os.getenv("SOCIALQ_LOG_FORMAT", "text").lower() == "json":
        return JsonLineFormatter()
    return logging.Formatter(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def configure_logging() -> logging.Logger:
    """Attach the stream handler to the package logger once; re-apply the level."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if not any(getattr(h, "_socialq", False) for h in package_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(_build_formatter())
        handler._socialq = True  # type: ignore[attr-defined]
        package_logger.addHandler(handler)
    package_logger.setLevel(_resolve_level())
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the socialq package logger."""
    configure_logging()
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
