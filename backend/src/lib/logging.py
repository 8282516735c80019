"""
JSON logging for the POS backend.

Each record is written to stdout as a single JSON object. The correlation id of
the request being served is attached automatically, so a refused sale can be
traced from the access line to the settlement log and the error response.
"""
import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from src.lib.settings import settings


correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Keys present on every LogRecord; anything else came in through `extra=`
_STANDARD_KEYS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


class JSONFormatter(logging.Formatter):
    """Render a LogRecord as one line of JSON."""

    def __init__(self, service: str = settings.app_name):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = correlation_id_var.get()
        if correlation_id:
            entry["correlation_id"] = correlation_id

        if record.levelno >= logging.WARNING:
            entry["source"] = f"{record.module}:{record.lineno}"

        entry.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_KEYS and not key.startswith("_")
        )

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO", json_format: bool = True) -> None:
    """
    Point the root logger at stdout.

    Args:
        level: Level name; unknown names fall back to INFO
        json_format: JSON lines when True, `asctime level logger: message` otherwise
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        JSONFormatter()
        if json_format
        else logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # SQL echo only while debugging
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_correlation_id(correlation_id: Optional[str]) -> Token:
    """Bind a correlation id to the current context; keep the token to undo it."""
    return correlation_id_var.set(correlation_id)


def reset_correlation_id(token: Token) -> None:
    correlation_id_var.reset(token)


setup_logging(
    level="DEBUG" if settings.debug else settings.log_level,
    json_format=settings.log_json,
)
