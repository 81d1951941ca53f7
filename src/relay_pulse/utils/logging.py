"""Structured logging infrastructure with syslog integration and correlation ID tracking.

Every poll cycle and every view transition runs under its own correlation
ID, stored in a ContextVar and stamped onto each log record so interleaved
suspension chains can be told apart in the output.
"""

import contextvars
import logging
import logging.handlers
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Final, override

__all__ = [
    "CorrelationIDFilter",
    "configure_logging",
    "correlation_id_var",
    "correlation_scope",
    "generate_correlation_id",
    "get_correlation_id",
]

correlation_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id",
    default=None,
)

DEFAULT_LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] - %(message)s"

SYSLOG_LOG_FORMAT: Final[str] = (
    "relay-pulse[%(process)d]: %(levelname)s - [%(correlation_id)s] - %(name)s - %(message)s"
)

DEFAULT_SYSLOG_ADDRESS: Final[str] = "/dev/log"


class CorrelationIDFilter(logging.Filter):
    """Logging filter that adds correlation ID to log records.

    Retrieves the correlation ID from the ContextVar and adds it to each
    log record. Asyncio tasks inherit the ID of the context they were
    created in.
    """

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        """Add correlation ID to log record from ContextVar.

        Args:
            record: Log record to enhance with correlation ID

        Returns:
            True to allow the record to be logged
        """
        correlation_id = correlation_id_var.get()
        record.correlation_id = correlation_id if correlation_id is not None else "N/A"
        return True


def configure_logging(
    *,
    log_level: str = "INFO",
    enable_syslog: bool = False,
    syslog_address: str = DEFAULT_SYSLOG_ADDRESS,
    enable_console: bool = True,
) -> None:
    """Configure application logging with optional syslog and console output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_syslog: Enable syslog handler
        syslog_address: Syslog socket address
        enable_console: Enable console output handler

    Example:
        >>> configure_logging(log_level="DEBUG", enable_syslog=False)
        >>> logging.getLogger(__name__).info("Widget starting")
    """
    root_logger = logging.getLogger()

    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    correlation_filter = CorrelationIDFilter()

    if enable_syslog:
        try:
            syslog_handler = logging.handlers.SysLogHandler(
                address=syslog_address,
                facility=logging.handlers.SysLogHandler.LOG_USER,
            )
            syslog_handler.setFormatter(logging.Formatter(SYSLOG_LOG_FORMAT))
            syslog_handler.addFilter(correlation_filter)
            root_logger.addHandler(syslog_handler)

        except OSError as exc:
            # Syslog not available (e.g., development environment), fall back to console only
            print(
                f"Warning: Could not connect to syslog at {syslog_address}: {exc}",
                file=sys.stderr,
            )

    if enable_console:
        # stdout carries command output
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
        console_handler.addFilter(correlation_filter)
        root_logger.addHandler(console_handler)


def generate_correlation_id(prefix: str = "") -> str:
    """Return a short unique correlation ID, optionally prefixed."""
    short = uuid.uuid4().hex[:12]
    return f"{prefix}-{short}" if prefix else short


def get_correlation_id() -> str | None:
    """Get the current correlation ID from context."""
    return correlation_id_var.get()


@contextmanager
def correlation_scope(prefix: str) -> Iterator[str]:
    """Run a block under a fresh correlation ID and restore the previous one.

    Args:
        prefix: Short label for the kind of work (e.g. ``poll``)

    Yields:
        The generated correlation ID

    Example:
        >>> with correlation_scope("poll") as cid:
        ...     logging.getLogger(__name__).info("Fetching status")
    """
    token = correlation_id_var.set(generate_correlation_id(prefix))
    try:
        yield correlation_id_var.get() or ""
    finally:
        correlation_id_var.reset(token)
