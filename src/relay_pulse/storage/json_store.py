"""Auto-saving JSON file key-value store.

Holds widget settings and window geometry in a single JSON object on disk.
Every ``set`` rewrites the file through a temporary sibling followed by an
atomic replace, so a crash mid-write never leaves a truncated file. A file
that does not hold a JSON object is moved aside to ``<name>.corrupt`` and
the store starts empty, so the next ``set`` writes a fresh file.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import cast

from relay_pulse.core.exceptions import PersistenceError

__all__ = ["JsonFileStore"]

logger = logging.getLogger(__name__)


class JsonFileStore:
    """KeyValueStore backed by a JSON file, loaded lazily on first access.

    The file is re-read whenever its inode, size or modification time differs
    from what was last seen, so edits made by another process are picked up.
    """

    storage_path: Path

    def __init__(self, storage_path: Path) -> None:
        """Initialize the store.

        Args:
            storage_path: JSON file holding the settings object
        """
        self.storage_path = storage_path
        self._data: dict[str, object] | None = None
        self._loaded_signature: tuple[int, int, int] | None = None
        self._io_lock: asyncio.Lock = asyncio.Lock()

    def _read_file(self) -> dict[str, object]:
        if not self.storage_path.exists():
            return {}
        try:
            with open(self.storage_path, "r", encoding="utf-8") as f:
                raw: object = json.load(f)  # pyright: ignore[reportAny]  # JSON boundary
        except ValueError as e:
            # JSONDecodeError or undecodable bytes
            return self._discard_corrupt_file(f"not valid JSON: {e}")
        except OSError as e:
            raise PersistenceError(f"Failed to read settings file: {e}", context={"path": str(self.storage_path)}) from e

        if not isinstance(raw, dict):
            return self._discard_corrupt_file(f"root is {type(raw).__name__}, not a JSON object")
        return cast(dict[str, object], raw)

    def _discard_corrupt_file(self, reason: str) -> dict[str, object]:
        corrupt_path = self.storage_path.with_name(self.storage_path.name + ".corrupt")
        try:
            os.replace(self.storage_path, corrupt_path)
        except OSError as e:
            raise PersistenceError(
                f"Settings file is unusable ({reason}) and could not be moved aside: {e}",
                context={"path": str(self.storage_path)},
            ) from e
        logger.warning(
            "Settings file is unusable, starting from an empty store",
            extra={"path": str(self.storage_path), "reason": reason, "backup": str(corrupt_path)},
        )
        return {}

    def _write_file(self, data: dict[str, object]) -> None:
        tmp_path = self.storage_path.with_name(self.storage_path.name + ".tmp")
        try:
            self.storage_path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.storage_path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to save settings file: {e}", context={"path": str(self.storage_path)}) from e

    def _file_signature(self) -> tuple[int, int, int] | None:
        try:
            stat = self.storage_path.stat()
        except OSError:
            return None
        return (stat.st_ino, stat.st_size, stat.st_mtime_ns)

    async def _ensure_loaded(self) -> dict[str, object]:
        signature = await asyncio.to_thread(self._file_signature)
        if self._data is None or signature != self._loaded_signature:
            self._data = await asyncio.to_thread(self._read_file)
            self._loaded_signature = await asyncio.to_thread(self._file_signature)
            logger.debug("Loaded settings store", extra={"path": str(self.storage_path), "keys": sorted(self._data)})
        return self._data

    async def _save(self, data: dict[str, object]) -> None:
        await asyncio.to_thread(self._write_file, data)
        self._data = data
        self._loaded_signature = await asyncio.to_thread(self._file_signature)

    async def get(self, key: str) -> object | None:
        """Return the value stored under key, or None when absent.

        Raises:
            PersistenceError: If the settings file cannot be read
        """
        async with self._io_lock:
            data = await self._ensure_loaded()
            return data.get(key)

    async def set(self, key: str, value: object) -> None:
        """Store value under key and save the file.

        The in-memory value is only replaced once the file write succeeded.

        Raises:
            PersistenceError: If the settings file cannot be read or written
        """
        async with self._io_lock:
            data = await self._ensure_loaded()
            updated = {**data, key: value}
            await self._save(updated)

    async def delete(self, key: str) -> bool:
        """Remove key from the store.

        Returns:
            True if the key existed
        """
        async with self._io_lock:
            data = await self._ensure_loaded()
            if key not in data:
                return False
            updated = {k: v for k, v in data.items() if k != key}
            await self._save(updated)
            return True
