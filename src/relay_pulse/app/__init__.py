"""Application module for the relay-pulse widget."""

from __future__ import annotations

from relay_pulse.app.cli import cli
from relay_pulse.app.runner import ApplicationRunner

__all__ = [
    "cli",
    "ApplicationRunner",
]
