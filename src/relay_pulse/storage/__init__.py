"""Persisted key-value store implementations."""

from relay_pulse.storage.json_store import JsonFileStore

__all__ = ["JsonFileStore"]
