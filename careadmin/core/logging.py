"""
Logging utilities for the API process.

Provides a consistent logging format and stamps the current request id on
every record so lines from one request can be correlated.
"""

import logging
import sys
from contextvars import ContextVar
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class RequestIdFilter(logging.Filter):
    """Attach ``request_id`` to records, ``-`` outside of a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = request_id_var.get() or "-"
        return True


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a sensible default format."""
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s",
        handlers=[handler],
    )


__all__ = ["RequestIdFilter", "configure_logging", "request_id_var"]
