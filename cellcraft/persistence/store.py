"""Key-value stores that hold the save blob.

The game only needs ``get``/``set``/``remove`` on string values, the same
contract as browser local storage.  ``InMemoryStore`` serves tests and
throwaway sessions; ``JsonFileStore`` keeps one JSON file per key on disk.
"""

from __future__ import annotations

import os
import re
from abc import ABC, abstractmethod
from pathlib import Path

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


class KeyValueStore(ABC):
    """Abstract string key-value store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or ``None`` if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key``.  Removing an absent key is not an error."""


class InMemoryStore(KeyValueStore):
    """Dict-backed store; contents vanish with the process."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """Stores each key as ``<directory>/<key>.json``.

    Writes go to a temporary sibling first and are moved into place, so a
    crash mid-write leaves the previous save intact.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{_UNSAFE.sub('_', key)}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)

    def remove(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)
