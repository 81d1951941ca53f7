"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from relay_pulse.types.models import StatusRecord
from tests.fixtures.widget_fakes import InMemoryStore, RecordingWindow, sample_status_set


@pytest.fixture
def status_set() -> tuple[StatusRecord, ...]:
    """Provide a mixed status set spanning two providers."""
    return sample_status_set()


@pytest.fixture
def memory_store() -> InMemoryStore:
    """Provide an empty in-memory key-value store."""
    return InMemoryStore()


@pytest.fixture
def window() -> RecordingWindow:
    """Provide a recording window at 2x scale with the default card geometry."""
    return RecordingWindow(x=100, y=50, width=520, height=320, scale_factor=2.0)
