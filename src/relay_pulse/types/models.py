"""Data models for relay-pulse application.

This module defines immutable dataclasses used throughout the application
for type-safe data transfer between components.
"""

from dataclasses import dataclass
from enum import Enum, auto


@dataclass(slots=True, frozen=True)
class CurrentStatus:
    """Latest check result for a monitored target."""

    status: int  # 1 = up, 0 = down
    latency_ms: float


@dataclass(slots=True, frozen=True)
class TimelineSample:
    """Immutable historical observation for a monitored target.

    Samples are ordered oldest to newest inside a StatusRecord timeline.
    The availability figure is carried by the source and may reflect
    sub-interval granularity, so it is never re-derived from ``status``.
    """

    time: str
    status: int
    latency_ms: float
    availability_pct: float


@dataclass(slots=True, frozen=True)
class StatusRecord:
    """Immutable status snapshot for one (provider, service, channel) triple.

    The triple identifies the target but is not guaranteed unique by the
    status source; the list index is the fallback display key.
    """

    provider: str
    service: str
    channel: str
    current_status: CurrentStatus
    timeline: tuple[TimelineSample, ...] = ()

    @property
    def is_up(self) -> bool:
        """Return True when the latest check reported the target as up."""
        return self.current_status.status == 1


@dataclass(slots=True, frozen=True)
class WindowGeometry:
    """Window position and optional size in logical pixels."""

    x: int
    y: int
    width: int | None = None
    height: int | None = None

    def to_mapping(self) -> dict[str, int]:
        """Serialize to the persisted store representation.

        Size keys are omitted when unset so bubble slots stay position-only.
        """
        data = {"x": self.x, "y": self.y}
        if self.width is not None and self.height is not None:
            data["width"] = self.width
            data["height"] = self.height
        return data


@dataclass(slots=True, frozen=True)
class BubbleConfig:
    """Compact bubble overlay configuration.

    Owned by the view mode controller and replaced (never mutated) through
    its setters.
    """

    enabled: bool = False
    provider: str = ""
    service: str = ""
    channel: str = ""
    size: int = 120


class ViewMode(Enum):
    """Active widget view."""

    CARD = auto()
    SETTINGS = auto()
    BUBBLE = auto()


class GeometrySlot(Enum):
    """Named persisted geometry records."""

    CARD = "cardWindowState"
    BUBBLE = "bubbleWindowState"
