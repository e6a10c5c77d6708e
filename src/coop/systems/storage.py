"""Key/value persistence sinks.

Values must be JSON-serialisable; models expose ``to_dict``/``from_dict`` for
that purpose. Both stores hand out deep copies so callers never share state
with the store.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Protocol, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StorageSink(Protocol):
    def load_value(self, key: str, default: Any = None) -> Any: ...

    def save_value(self, key: str, value: Any) -> None: ...

    def remove_value(self, key: str) -> None: ...

    def clear_all(self) -> None: ...


class MemoryStorage:
    """Process-local store, used by tests and headless hosts."""

    def __init__(self, initial: Dict[str, Any] | None = None) -> None:
        self._values: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.save_value(key, value)

    def load_value(self, key: str, default: Any = None) -> Any:
        encoded = self._values.get(key)
        if encoded is None:
            return default
        return json.loads(encoded)

    def save_value(self, key: str, value: Any) -> None:
        self._values[key] = json.dumps(value)

    def remove_value(self, key: str) -> None:
        self._values.pop(key, None)

    def clear_all(self) -> None:
        self._values.clear()

    def keys(self) -> list[str]:
        return sorted(self._values)


class JsonFileStorage:
    """Stores every key in a single JSON document on disk."""

    def __init__(self, save_path: Path | str | None = None) -> None:
        self._save_path = Path(save_path) if save_path is not None else self._default_save_path()
        self._values: Dict[str, Any] = self._read()

    @staticmethod
    def _default_save_path() -> Path:
        return Path(__file__).resolve().parents[3] / "data" / "coop_storage.json"

    @property
    def path(self) -> Path:
        return self._save_path

    def _read(self) -> Dict[str, Any]:
        try:
            with self._save_path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable storage file %s", self._save_path)
            return {}
        if not isinstance(payload, dict):
            logger.warning("Storage file %s does not hold an object; starting empty", self._save_path)
            return {}
        return payload

    def _write(self) -> None:
        self._save_path.parent.mkdir(parents=True, exist_ok=True)
        with self._save_path.open("w", encoding="utf-8") as handle:
            json.dump(self._values, handle, indent=2)

    def load_value(self, key: str, default: Any = None) -> Any:
        if key not in self._values:
            return default
        return json.loads(json.dumps(self._values[key]))

    def save_value(self, key: str, value: Any) -> None:
        self._values[key] = json.loads(json.dumps(value))
        self._write()

    def remove_value(self, key: str) -> None:
        if self._values.pop(key, None) is not None:
            self._write()

    def clear_all(self) -> None:
        self._values = {}
        self._write()


def load_model(storage: StorageSink, key: str, decode: Callable[[Any], T], default: Callable[[], T]) -> T:
    """Decode a stored value, falling back to ``default()`` when absent or corrupt."""
    payload = storage.load_value(key)
    if payload is None:
        return default()
    try:
        return decode(payload)
    except (KeyError, TypeError, ValueError):
        logger.warning("Stored value for %r is unreadable; using defaults", key)
        return default()
