"""
cache/store.py

Durable key-value stores backing the status cache and saved credentials.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """
    String key-value store with per-key replacement semantics.
    """

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class InMemoryStore:
    """
    Process-local store; contents vanish with the process.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)


class JsonFileStore:
    """
    Keys and string values kept in one JSON document on local disk.

    Writes go to a temporary sibling file which then replaces the target. An
    unreadable or malformed document is treated as empty.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        with self._lock:
            value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            document = self._read_all()
            document[key] = value
            self._write_all(document)

    def delete(self, key: str) -> None:
        with self._lock:
            document = self._read_all()
            if key in document:
                del document[key]
                self._write_all(document)

    def _read_all(self) -> dict[str, object]:
        if not self._path.exists():
            return {}
        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Discarding unreadable key-value store path=%s error=%s", self._path, exc)
            return {}
        if not isinstance(document, dict):
            logger.warning("Discarding malformed key-value store path=%s", self._path)
            return {}
        return document

    def _write_all(self, document: dict[str, object]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(f"{self._path.suffix}.tmp")
        tmp_path.write_text(json.dumps(document, ensure_ascii=False), encoding="utf-8")
        tmp_path.replace(self._path)
