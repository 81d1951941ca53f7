"""Window geometry persistence adapter.

Bridges the host window API (physical pixels) and the persisted key-value
store (logical pixels). Two slots exist:

- ``cardWindowState``: position and size of the card window
- ``bubbleWindowState``: position only; the bubble size comes from
  BubbleConfig and is never stored

Every read of the current geometry is converted with
``round(physical / scale_factor)`` before it is persisted, so restoring a
slot is independent of the scale factor in effect when it was saved.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import Final

from pydantic import BaseModel, ValidationError

from relay_pulse.core.exceptions import HostQueryError, PersistenceError
from relay_pulse.types.models import GeometrySlot, WindowGeometry
from relay_pulse.types.protocols import HostWindow, KeyValueStore

__all__ = [
    "CARD_DEFAULT_SIZE",
    "WindowGeometryStore",
    "to_logical",
]

CARD_DEFAULT_SIZE: Final[tuple[int, int]] = (520, 320)

logger = logging.getLogger(__name__)


class _StoredGeometry(BaseModel):
    """Validation schema for a persisted geometry record."""

    x: int
    y: int
    width: int | None = None
    height: int | None = None


def to_logical(physical: float, scale_factor: float) -> int:
    """Convert a physical pixel value to logical pixels.

    Args:
        physical: Value reported by the host in physical pixels
        scale_factor: Host scale factor (must be positive)

    Returns:
        Rounded logical pixel value

    Raises:
        HostQueryError: If the scale factor is not positive

    Examples:
        >>> to_logical(1040, 2.0)
        520
    """
    if scale_factor <= 0:
        msg = f"Host reported a non-positive scale factor: {scale_factor}"
        raise HostQueryError(msg, operation="scale_factor")
    return round(physical / scale_factor)


class WindowGeometryStore:
    """Save and restore window geometry slots through an async store."""

    def __init__(
        self,
        store: KeyValueStore,
        host: HostWindow,
        *,
        card_default_size: tuple[int, int] = CARD_DEFAULT_SIZE,
    ) -> None:
        self._store: KeyValueStore = store
        self._host: HostWindow = host
        self._card_default_size: tuple[int, int] = card_default_size

    async def _host_call[T](self, operation: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except HostQueryError:
            raise
        except Exception as exc:
            msg = f"Host window operation '{operation}' failed: {exc}"
            raise HostQueryError(msg, operation=operation) from exc

    async def read_current(self) -> WindowGeometry:
        """Query the host and return the current geometry in logical pixels.

        Raises:
            HostQueryError: If any host query fails
        """
        scale_factor = await self._host_call("scale_factor", self._host.scale_factor())
        width, height = await self._host_call("current_size", self._host.current_size())
        x, y = await self._host_call("outer_position", self._host.outer_position())

        current = WindowGeometry(
            x=to_logical(x, scale_factor),
            y=to_logical(y, scale_factor),
            width=to_logical(width, scale_factor),
            height=to_logical(height, scale_factor),
        )
        logger.debug(
            "Read current window geometry",
            extra={"geometry": current.to_mapping(), "scale_factor": scale_factor},
        )
        return current

    async def read_position(self) -> WindowGeometry:
        """Query the host for the current position only, in logical pixels.

        Raises:
            HostQueryError: If the scale factor or position query fails
        """
        scale_factor = await self._host_call("scale_factor", self._host.scale_factor())
        x, y = await self._host_call("outer_position", self._host.outer_position())
        return WindowGeometry(x=to_logical(x, scale_factor), y=to_logical(y, scale_factor))

    async def save_current(self, slot: GeometrySlot) -> WindowGeometry:
        """Persist the current geometry into a slot.

        The bubble slot keeps only the position.

        Args:
            slot: Slot to write

        Returns:
            The logical geometry that was written

        Raises:
            HostQueryError: If the host could not be queried
            PersistenceError: If the store write failed
        """
        if slot is GeometrySlot.BUBBLE:
            current = await self.read_position()
        else:
            current = await self.read_current()

        try:
            await self._store.set(slot.value, current.to_mapping())
        except PersistenceError:
            raise
        except Exception as exc:
            msg = f"Failed to persist window geometry: {exc}"
            raise PersistenceError(msg, key=slot.value) from exc

        logger.info("Saved window geometry", extra={"slot": slot.value, "geometry": current.to_mapping()})
        return current

    async def load(self, slot: GeometrySlot) -> WindowGeometry | None:
        """Read a slot from the store.

        Returns:
            Stored logical geometry, or None when absent or malformed

        Raises:
            PersistenceError: If the store read failed
        """
        try:
            raw = await self._store.get(slot.value)
        except PersistenceError:
            raise
        except Exception as exc:
            msg = f"Failed to read window geometry: {exc}"
            raise PersistenceError(msg, key=slot.value) from exc

        if raw is None:
            return None

        try:
            stored = _StoredGeometry.model_validate(raw)
        except ValidationError as exc:
            logger.warning(
                "Ignoring malformed stored window geometry",
                extra={"slot": slot.value, "error": str(exc)},
            )
            return None

        return WindowGeometry(x=stored.x, y=stored.y, width=stored.width, height=stored.height)

    async def _load_or_none(self, slot: GeometrySlot) -> WindowGeometry | None:
        try:
            return await self.load(slot)
        except PersistenceError as exc:
            logger.error(
                "Could not read stored window geometry, using fallback",
                extra={"slot": slot.value, "error": str(exc)},
            )
            return None

    async def restore_card(self) -> WindowGeometry | None:
        """Restore the card slot, or apply the default card size.

        With no usable stored record the window is resized to the default
        size and its position is left untouched.

        Returns:
            The restored geometry, or None when the fallback was applied

        Raises:
            HostQueryError: If the host rejected the resize or move
        """
        stored = await self._load_or_none(GeometrySlot.CARD)
        if stored is None or stored.width is None or stored.height is None:
            width, height = self._card_default_size
            await self._host_call("set_size", self._host.set_size(width, height))
            logger.info("No stored card geometry, applied default size", extra={"width": width, "height": height})
            return None

        await self._host_call("set_size", self._host.set_size(stored.width, stored.height))
        await self._host_call("set_position", self._host.set_position(stored.x, stored.y))
        logger.info("Restored card geometry", extra={"geometry": stored.to_mapping()})
        return stored

    async def restore_bubble(self, size: int) -> WindowGeometry | None:
        """Resize to the bubble size and restore the bubble position if stored.

        Args:
            size: Bubble edge length in logical pixels

        Returns:
            The restored position, or None when the window was left in place

        Raises:
            HostQueryError: If the host rejected the resize or move
        """
        await self._host_call("set_size", self._host.set_size(size, size))

        stored = await self._load_or_none(GeometrySlot.BUBBLE)
        if stored is None:
            logger.info("No stored bubble position, keeping current position")
            return None

        await self._host_call("set_position", self._host.set_position(stored.x, stored.y))
        position = WindowGeometry(x=stored.x, y=stored.y)
        logger.info("Restored bubble position", extra={"geometry": position.to_mapping()})
        return position
