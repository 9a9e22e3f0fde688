"""
Settings persistence.

The store is a single-key JSON blob; everything above it goes through
``merge_defaults`` so missing or stale data is backfilled on every load.
"""

from __future__ import annotations

import copy
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from .config import get_storage_path
from .settings import Settings, defaults, merge_defaults

logger = logging.getLogger(__name__)

STORAGE_KEY = "studymode.settings.v1"


class SettingsStore(ABC):
    """Key-value storage holding JSON values."""

    @abstractmethod
    async def get(self, key: str) -> Any: ...

    @abstractmethod
    async def set(self, key: str, value: Any) -> None: ...

    @abstractmethod
    async def clear(self) -> None: ...


class MemoryStore(SettingsStore):
    """In-process store. Values are copied in and out like a serializing store."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = json.loads(json.dumps(value))

    async def clear(self) -> None:
        self._data.clear()


class JsonFileStore(SettingsStore):
    """Store backed by one JSON object on disk."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path if path is not None else get_storage_path()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to read settings store %s: %s", self.path, e)
            return {}

        if not isinstance(data, dict):
            logger.warning("Settings store %s is not a JSON object, ignoring", self.path)
            return {}
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        tmp.replace(self.path)

    async def get(self, key: str) -> Any:
        return self._read().get(key)

    async def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    async def clear(self) -> None:
        self._write({})


async def load_settings(store: SettingsStore) -> Settings:
    """Load settings, persisting the backfilled version if it changed."""
    stored = await store.get(STORAGE_KEY)
    settings, changed = merge_defaults(stored)
    if changed:
        logger.debug("Persisting backfilled settings")
        await store.set(STORAGE_KEY, settings)
    return settings


async def ensure_defaults(store: SettingsStore) -> Settings:
    """Make sure a complete settings document is stored."""
    stored = await store.get(STORAGE_KEY)
    settings, _ = merge_defaults(stored)
    await store.set(STORAGE_KEY, settings)
    return settings


async def save_settings(store: SettingsStore, settings: Settings) -> None:
    """Persist settings."""
    await store.set(STORAGE_KEY, settings)


async def reset_settings(store: SettingsStore) -> Settings:
    """Wipe the store and write defaults."""
    await store.clear()
    settings = defaults()
    await store.set(STORAGE_KEY, settings)
    return settings
