"""Widget core: selection, aggregation, geometry, view mode and polling."""

from relay_pulse.core.availability import aggregate, recent_window
from relay_pulse.core.geometry import WindowGeometryStore
from relay_pulse.core.poller import StatusPoller
from relay_pulse.core.selection import SelectionModel, SelectionOptions, SelectionState
from relay_pulse.core.view_mode import ViewModeController, resolve_view_mode

__all__ = [
    "SelectionModel",
    "SelectionOptions",
    "SelectionState",
    "StatusPoller",
    "ViewModeController",
    "WindowGeometryStore",
    "aggregate",
    "recent_window",
    "resolve_view_mode",
]
