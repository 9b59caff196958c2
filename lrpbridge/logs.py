from __future__ import annotations

import logging
from typing import Any

LOGGER_NAME = "lrpbridge"

logger = logging.getLogger(LOGGER_NAME)

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def configure_logging(level: str = "INFO") -> None:
    """Attach a stream handler to the package logger (idempotent)."""
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(_LEVELS.get(level.upper(), logging.INFO))


def _render(context: dict[str, Any]) -> str:
    return " ".join(f"{k}={context[k]}" for k in sorted(context) if context[k] is not None)


def log_event(level: str, message: str, **context: Any) -> None:
    """Log a short event name with key=value context.

    Example: log_event("ERROR", "failed-to-convert-message", process_guid=guid, error=e)
    """
    extra = _render(context)
    logger.log(_LEVELS.get(level.upper(), logging.INFO), f"{message} {extra}" if extra else message)
