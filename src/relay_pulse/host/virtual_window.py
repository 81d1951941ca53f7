"""In-process host window used when running headless.

Tracks window geometry in physical pixels the way a desktop window manager
would report it, while accepting logical pixels on the setters. The widget
controller drives it exactly as it would drive a real host window.
"""

from __future__ import annotations

import logging

__all__ = ["VirtualWindow"]

logger = logging.getLogger(__name__)


class VirtualWindow:
    """HostWindow implementation keeping geometry in memory."""

    def __init__(
        self,
        *,
        x: int = 0,
        y: int = 0,
        width: int = 520,
        height: int = 320,
        scale_factor: float = 1.0,
    ) -> None:
        """Initialize the window with logical geometry.

        Args:
            x: Logical x position
            y: Logical y position
            width: Logical width
            height: Logical height
            scale_factor: Physical pixels per logical pixel
        """
        if scale_factor <= 0:
            msg = "scale_factor must be positive"
            raise ValueError(msg)
        self._scale_factor: float = scale_factor
        self._physical_position: tuple[int, int] = (self._to_physical(x), self._to_physical(y))
        self._physical_size: tuple[int, int] = (self._to_physical(width), self._to_physical(height))

    def _to_physical(self, logical: int) -> int:
        return round(logical * self._scale_factor)

    async def current_size(self) -> tuple[int, int]:
        return self._physical_size

    async def outer_position(self) -> tuple[int, int]:
        return self._physical_position

    async def scale_factor(self) -> float:
        return self._scale_factor

    async def set_size(self, width: int, height: int) -> None:
        self._physical_size = (self._to_physical(width), self._to_physical(height))
        logger.debug("Window resized", extra={"width": width, "height": height})

    async def set_position(self, x: int, y: int) -> None:
        self._physical_position = (self._to_physical(x), self._to_physical(y))
        logger.debug("Window moved", extra={"x": x, "y": y})

    def move_to_monitor(self, scale_factor: float) -> None:
        """Simulate dragging the window to a display with another scale factor.

        Logical geometry is preserved; physical values are recomputed.
        """
        if scale_factor <= 0:
            msg = "scale_factor must be positive"
            raise ValueError(msg)
        old = self._scale_factor
        x, y = (round(v / old) for v in self._physical_position)
        width, height = (round(v / old) for v in self._physical_size)
        self._scale_factor = scale_factor
        self._physical_position = (self._to_physical(x), self._to_physical(y))
        self._physical_size = (self._to_physical(width), self._to_physical(height))
