"""Persisted widget settings and the poll interval control.

Bubble configuration and the poll interval survive restarts through the same
key-value store that holds window geometry. Stored values that fail
validation fall back to the configured defaults with a warning.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Annotated, Final

from pydantic import BaseModel, Field, ValidationError

from relay_pulse.core.config import (
    BUBBLE_SIZE_STEP,
    DEFAULT_INTERVAL_MS,
    MAX_BUBBLE_SIZE,
    MAX_INTERVAL_MS,
    MIN_BUBBLE_SIZE,
    MIN_INTERVAL_MS,
)
from relay_pulse.core.exceptions import PersistenceError
from relay_pulse.types.models import BubbleConfig
from relay_pulse.types.protocols import KeyValueStore

__all__ = [
    "BUBBLE_CONFIG_KEY",
    "INTERVAL_KEY",
    "IntervalSetting",
    "SettingsRepository",
    "clamp_interval",
    "step_bubble_size",
]

BUBBLE_CONFIG_KEY: Final[str] = "bubbleConfig"
INTERVAL_KEY: Final[str] = "intervalMs"

logger = logging.getLogger(__name__)


class _StoredBubbleConfig(BaseModel):
    enabled: bool
    provider: str
    service: str
    channel: str
    size: Annotated[int, Field(ge=MIN_BUBBLE_SIZE, le=MAX_BUBBLE_SIZE)]


def clamp_interval(ms: int) -> int:
    """Clamp a poll interval to the supported 1–60 second range."""
    return max(MIN_INTERVAL_MS, min(MAX_INTERVAL_MS, ms))


def step_bubble_size(size: int, steps: int) -> int:
    """Move the bubble size by whole steps of 10, clamped to [80, 200].

    Examples:
        >>> step_bubble_size(120, 1)
        130
        >>> step_bubble_size(80, -1)
        80
    """
    return max(MIN_BUBBLE_SIZE, min(MAX_BUBBLE_SIZE, size + steps * BUBBLE_SIZE_STEP))


class IntervalSetting:
    """In-process poll interval shared by the poller and the settings surface.

    The poller re-reads the value every cycle, so a change takes effect from
    the next scheduled fetch.
    """

    def __init__(self, initial_ms: int = DEFAULT_INTERVAL_MS) -> None:
        self._interval_ms: int = clamp_interval(initial_ms)

    def get_interval(self) -> int:
        return self._interval_ms

    def set_interval(self, ms: int) -> None:
        clamped = clamp_interval(ms)
        if clamped != ms:
            logger.warning(
                "Poll interval out of range, clamped",
                extra={"requested_ms": ms, "interval_ms": clamped},
            )
        self._interval_ms = clamped


class SettingsRepository:
    """Load and save bubble configuration and poll interval."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        default_bubble: BubbleConfig,
        default_interval_ms: int = DEFAULT_INTERVAL_MS,
    ) -> None:
        self._store: KeyValueStore = store
        self._default_bubble: BubbleConfig = default_bubble
        self._default_interval_ms: int = default_interval_ms

    async def _get(self, key: str) -> object | None:
        try:
            return await self._store.get(key)
        except PersistenceError as exc:
            logger.error("Could not read stored setting, using default", extra={"key": key, "error": str(exc)})
            return None

    async def load_bubble_config(self) -> BubbleConfig:
        """Return the stored bubble configuration or the configured default."""
        raw = await self._get(BUBBLE_CONFIG_KEY)
        if raw is None:
            return self._default_bubble

        try:
            stored = _StoredBubbleConfig.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Ignoring malformed stored bubble config", extra={"error": str(exc)})
            return self._default_bubble

        return BubbleConfig(**stored.model_dump())

    async def save_bubble_config(self, config: BubbleConfig) -> None:
        """Persist the bubble configuration.

        Raises:
            PersistenceError: If the store write failed
        """
        await self._store.set(BUBBLE_CONFIG_KEY, asdict(config))

    async def load_interval_ms(self) -> int:
        """Return the stored poll interval or the configured default."""
        raw = await self._get(INTERVAL_KEY)
        if raw is None:
            return self._default_interval_ms
        if isinstance(raw, bool) or not isinstance(raw, int):
            logger.warning("Ignoring malformed stored poll interval", extra={"value": repr(raw)})
            return self._default_interval_ms
        return clamp_interval(raw)

    async def save_interval_ms(self, ms: int) -> None:
        """Persist the poll interval (clamped).

        Raises:
            PersistenceError: If the store write failed
        """
        await self._store.set(INTERVAL_KEY, clamp_interval(ms))
