"""Synchronous key-value engines backing the local store.

Both engines behave like a browser's localStorage: string keys, string
values, and a fixed capacity measured in characters of keys plus values.
A write that would exceed the capacity raises StorageFullError and leaves
the previous contents untouched.

    MemoryKeyValueStore  process-lifetime storage (sessions, tests).
    FileKeyValueStore    one JSON object file on disk, rewritten on every
                         write.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 5 * 1024 * 1024


class StorageFullError(Exception):
    """Raised by an engine when a write does not fit in its capacity."""


class KeyValueStore(Protocol):
    capacity: int

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...

    def usage_bytes(self) -> int: ...


def _size(items: dict[str, str]) -> int:
    return sum(len(k) + len(v) for k, v in items.items())


class MemoryKeyValueStore:
    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self.capacity = capacity
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        candidate = {**self._items, key: value}
        if _size(candidate) > self.capacity:
            raise StorageFullError(f"Writing {key!r} exceeds {self.capacity} bytes")
        self._items = candidate

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)

    def usage_bytes(self) -> int:
        return _size(self._items)


class FileKeyValueStore:
    """Durable engine persisted as a single JSON object file."""

    def __init__(self, path: Path, capacity: int = DEFAULT_CAPACITY) -> None:
        self.capacity = capacity
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def _read(self) -> dict[str, str]:
        if not self._path.is_file():
            return {}
        try:
            data = json.loads(self._path.read_text())
        except (OSError, ValueError) as e:
            logger.warning("Unreadable key-value file %s: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Key-value file %s is not an object; ignoring it", self._path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, items: dict[str, str]) -> None:
        self._path.write_text(json.dumps(items, indent=2))

    def get_item(self, key: str) -> str | None:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read()
        items[key] = value
        if _size(items) > self.capacity:
            raise StorageFullError(f"Writing {key!r} exceeds {self.capacity} bytes")
        self._write(items)

    def remove_item(self, key: str) -> None:
        items = self._read()
        if items.pop(key, None) is not None:
            self._write(items)

    def keys(self) -> list[str]:
        return list(self._read())

    def usage_bytes(self) -> int:
        return _size(self._read())
