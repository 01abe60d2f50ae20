"""Logging setup for the ``lumiplan`` logger namespace."""
from __future__ import annotations

import json
import logging
import sys

ROOT_LOGGER = "lumiplan"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_OWNED = "_lumiplan_handler"

_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        for key, value in vars(record).items():
            if key not in _RESERVED:
                payload[key] = value
        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO", json_format: bool = False) -> logging.Logger:
    """Attach a single stdout handler to the ``lumiplan`` logger.

    Repeated calls replace the handler so it always writes to the current
    ``sys.stdout``.
    """

    if level.upper() not in LOG_LEVELS:
        raise ValueError(f"Unknown log level {level!r}; expected one of {', '.join(LOG_LEVELS)}")
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in [h for h in logger.handlers if getattr(h, _OWNED, False)]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    setattr(handler, _OWNED, True)
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger


__all__ = ["LOG_LEVELS", "JsonFormatter", "configure_logging"]
