"""Centralized logging configuration.

Every record emitted while a request is being served carries that
request's id, so orchestrator and store lines can be matched with the
access line written by RequestLoggingMiddleware.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone

from app.core.config import settings

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

# Extra attributes copied into JSON output when a log call supplies them
_EXTRA_KEYS = ("request_id", "owner_id", "analysis_state")

# Third-party loggers that are noisy at INFO
_LIBRARY_LEVELS = (
    ("httpx", logging.WARNING),
    ("httpcore", logging.WARNING),
    ("pypdf", logging.ERROR),
    ("multipart", logging.WARNING),
)


class RequestIdFilter(logging.Filter):
    """Attach the current request id to records that don't already have one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter for production."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            log_data["exception"] = self.formatException(record.exc_info)
        for key in _EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None and value != "-":
                log_data[key] = str(value)
        return json.dumps(log_data, ensure_ascii=False)


def setup_logging() -> None:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(RequestIdFilter())
    if settings.log_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(request_id)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    root.addHandler(handler)

    for name, library_level in _LIBRARY_LEVELS:
        logging.getLogger(name).setLevel(library_level)
    # SQL echo only in debug
    logging.getLogger("sqlalchemy.engine").setLevel(level if settings.app_debug else logging.WARNING)
