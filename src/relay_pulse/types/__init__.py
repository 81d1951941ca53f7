"""Type definitions and protocols for relay-pulse application.

This package provides:
- Data models (immutable dataclasses)
- Protocol definitions (structural subtyping interfaces)
- Type aliases (PEP 695 modern syntax)
"""

from relay_pulse.types.aliases import (
    RecordSequence,
    StatusListener,
    StatusSet,
)
from relay_pulse.types.models import (
    BubbleConfig,
    CurrentStatus,
    GeometrySlot,
    StatusRecord,
    TimelineSample,
    ViewMode,
    WindowGeometry,
)
from relay_pulse.types.protocols import (
    HostWindow,
    IntervalControl,
    KeyValueStore,
    StatusSource,
)

__all__ = [
    # Type aliases
    "RecordSequence",
    "StatusListener",
    "StatusSet",
    # Data models
    "BubbleConfig",
    "CurrentStatus",
    "GeometrySlot",
    "StatusRecord",
    "TimelineSample",
    "ViewMode",
    "WindowGeometry",
    # Protocols
    "HostWindow",
    "IntervalControl",
    "KeyValueStore",
    "StatusSource",
]
