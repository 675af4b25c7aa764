"""
Structured logging for the crawler.

Provides consistent logging with:
- JSON output for production
- Human-readable output for development
- Timed operations (duration_ms on the record)

Components log through ``logging.getLogger(__name__)``; this module only
configures handlers on the ``winescope`` logger.
"""
import json
import logging
import sys
import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional, TextIO

ROOT_LOGGER_NAME = "winescope"


@dataclass
class LogEntry:
    """Structured log entry."""
    timestamp: str
    level: str
    message: str
    logger: Optional[str] = None
    operation: Optional[str] = None
    duration_ms: Optional[float] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        data = {k: v for k, v in asdict(self).items() if v is not None}
        if not data.get("extra"):
            data.pop("extra", None)
        return json.dumps(data, default=str)

    def to_human(self) -> str:
        parts = [
            f"[{self.timestamp}]",
            f"[{self.level}]",
        ]

        if self.logger:
            parts.append(f"[{self.logger}]")

        parts.append(self.message)

        if self.duration_ms is not None:
            parts.append(f"({self.duration_ms:.2f}ms)")

        if self.error:
            parts.append(f"ERROR: {self.error}")

        return " ".join(parts)


def _entry_from_record(record: logging.LogRecord, timestamp: str) -> LogEntry:
    exc_type, exc_value = (record.exc_info or (None, None, None))[:2]
    return LogEntry(
        timestamp=timestamp,
        level=record.levelname,
        message=record.getMessage(),
        logger=record.name,
        operation=getattr(record, "operation", None),
        duration_ms=getattr(record, "duration_ms", None),
        error=str(exc_value) if exc_value else None,
        error_type=exc_type.__name__ if exc_type else None,
        extra=getattr(record, "extra", None) or {},
    )


class JSONFormatter(logging.Formatter):
    """JSON log formatter for production."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        return _entry_from_record(record, timestamp).to_json()


class HumanFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        return _entry_from_record(record, timestamp).to_human()


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure the ``winescope`` logger.

    Args:
        level: Log level name
        json_output: Emit one JSON object per line instead of human text
        stream: Output stream (default: stderr)

    Returns:
        The configured logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Clear existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else HumanFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    return logger


@contextmanager
def timed_operation(logger: logging.Logger, operation: str) -> Iterator[None]:
    """
    Log how long a block took.

    Usage:
        with timed_operation(logger, "fetch"):
            html = await crawler.fetch(url)
    """
    start = time.perf_counter()
    logger.debug(f"Starting {operation}", extra={"operation": operation})
    try:
        yield
    except Exception:
        duration_ms = (time.perf_counter() - start) * 1000
        logger.warning(
            f"Failed {operation}",
            extra={"operation": operation, "duration_ms": duration_ms},
        )
        raise
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        f"Completed {operation}",
        extra={"operation": operation, "duration_ms": duration_ms},
    )
