"""Relay Pulse - service availability status widget.

This package polls a relay status API, filters the monitored
(provider, service, channel) targets, and drives a card list or single-target
bubble view with window geometry that survives mode switches.
"""

from relay_pulse.__main__ import main

__all__ = ["main"]
