"""Durable key-value stores backing the user overlays."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

LOGGER = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...


class InMemoryKeyValueStore:
    """Session-only store; nothing survives the process."""

    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        self.data: Dict[str, Any] = {k: json.loads(json.dumps(v)) for k, v in (data or {}).items()}

    def get(self, key: str) -> Optional[Any]:
        value = self.data.get(key)
        # Hand out copies so callers cannot mutate stored state in place.
        return None if value is None else json.loads(json.dumps(value))

    def set(self, key: str, value: Any) -> None:
        self.data[key] = json.loads(json.dumps(value))

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def clear(self) -> None:
        self.data = {}


class JsonFileKeyValueStore:
    """
    Key-value store persisted as a single JSON object on disk.

    Every write rewrites the whole file before returning. An unreadable file
    is treated as empty; write failures are logged and leave the in-memory
    view updated, so the session keeps working but nothing survives a reload.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.data: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        if not self.path.exists():
            self.data = {}
            return
        try:
            with self.path.open("r", encoding="utf-8") as f:
                loaded = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.warning("Ignoring unreadable storage file %s: %s", self.path, exc)
            loaded = {}
        if not isinstance(loaded, dict):
            LOGGER.warning("Ignoring storage file %s: top level is not an object", self.path)
            loaded = {}
        self.data = loaded

    def save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as f:
                json.dump(self.data, f, indent=2)
        except OSError as exc:
            LOGGER.warning("Could not persist storage to %s: %s", self.path, exc)

    def get(self, key: str) -> Optional[Any]:
        value = self.data.get(key)
        return None if value is None else json.loads(json.dumps(value))

    def set(self, key: str, value: Any) -> None:
        self.data[key] = json.loads(json.dumps(value))
        self.save()

    def delete(self, key: str) -> None:
        if self.data.pop(key, None) is not None:
            self.save()

    def clear(self) -> None:
        self.data = {}
        self.save()
