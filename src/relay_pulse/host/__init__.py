"""Host window implementations."""

from relay_pulse.host.virtual_window import VirtualWindow

__all__ = ["VirtualWindow"]
