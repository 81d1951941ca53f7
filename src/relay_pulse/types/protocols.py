"""Protocol definitions for external collaborators.

This module defines structural subtyping protocols for the capabilities the
widget core consumes but does not own: the status source, the interval
control, the persisted key-value store and the host window.
"""

from typing import Protocol, runtime_checkable

from relay_pulse.types.models import StatusRecord


@runtime_checkable
class StatusSource(Protocol):
    """Protocol for the network status fetcher."""

    async def fetch_status(self) -> list[StatusRecord]:
        """Fetch the current status set.

        Returns:
            Status records in source order (duplicates possible)

        Raises:
            FetchError: If the source could not be reached or parsed
        """
        ...


@runtime_checkable
class IntervalControl(Protocol):
    """Protocol for the externally adjustable poll interval."""

    def get_interval(self) -> int:
        """Return the current poll interval in milliseconds."""
        ...

    def set_interval(self, ms: int) -> None:
        """Set the poll interval in milliseconds."""
        ...


@runtime_checkable
class KeyValueStore(Protocol):
    """Protocol for the persisted, auto-saving key-value store."""

    async def get(self, key: str) -> object | None:
        """Return the stored value for key, or None when absent.

        Raises:
            PersistenceError: If the store could not be read
        """
        ...

    async def set(self, key: str, value: object) -> None:
        """Store value under key.

        Raises:
            PersistenceError: If the store could not be written
        """
        ...


@runtime_checkable
class HostWindow(Protocol):
    """Protocol for the host window-manipulation API.

    Queries report physical pixels; setters take logical pixels. Converting
    between the two is the caller's responsibility.
    """

    async def current_size(self) -> tuple[int, int]:
        """Return (width, height) of the window in physical pixels."""
        ...

    async def outer_position(self) -> tuple[int, int]:
        """Return (x, y) of the window in physical pixels."""
        ...

    async def scale_factor(self) -> float:
        """Return the physical-to-logical scale factor."""
        ...

    async def set_size(self, width: int, height: int) -> None:
        """Resize the window to logical width and height."""
        ...

    async def set_position(self, x: int, y: int) -> None:
        """Move the window to logical x and y."""
        ...
