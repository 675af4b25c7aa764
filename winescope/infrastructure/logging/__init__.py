"""
Logging setup for the crawler.

Provides:
- Human-readable console output
- JSON output for production
- Timed operations
"""
from .structured_logger import (
    HumanFormatter,
    JSONFormatter,
    LogEntry,
    setup_logging,
    timed_operation,
)
