"""Shared utility modules (logging setup and HTTP client)."""

from relay_pulse.utils.logging import (
    configure_logging,
    correlation_scope,
    get_correlation_id,
)

__all__ = [
    "configure_logging",
    "correlation_scope",
    "get_correlation_id",
]
