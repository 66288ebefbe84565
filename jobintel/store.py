"""Persistent key-value store (settings blob, job board, client id) with file locking."""
from __future__ import annotations

import copy
import fcntl
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from jobintel.errors import StoreError
from jobintel.log import get_logger

log = get_logger(__name__)


class KeyValueStore(ABC):
    """Whole-value reads and writes; no partial or merge semantics."""

    @abstractmethod
    def get_many(self, defaults: dict[str, Any]) -> dict[str, Any]:
        pass

    @abstractmethod
    def set(self, items: dict[str, Any]) -> None:
        pass

    def get(self, key: str, default: Any = None) -> Any:
        return self.get_many({key: default})[key]


class MemoryStore(KeyValueStore):
    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial or {})

    def get_many(self, defaults: dict[str, Any]) -> dict[str, Any]:
        return {k: copy.deepcopy(self._data.get(k, v)) for k, v in defaults.items()}

    def set(self, items: dict[str, Any]) -> None:
        for k, v in items.items():
            self._data[k] = copy.deepcopy(v)


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    try:
        op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(f.fileno(), op)
    except (OSError, AttributeError):
        pass


def _unlock(f) -> None:
    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except (OSError, AttributeError):
        pass


class JsonFileStore(KeyValueStore):
    """All keys live in one JSON document on disk."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                _lock(f, exclusive=False)
                text = f.read()
                _unlock(f)
        except OSError as exc:
            raise StoreError(f"cannot read {self.path}: {exc}") from exc
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise StoreError(f"corrupt store {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"corrupt store {self.path}: top level is not an object")
        return data

    def get_many(self, defaults: dict[str, Any]) -> dict[str, Any]:
        data = self._read()
        return {k: data.get(k, v) for k, v in defaults.items()}

    def set(self, items: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a+", encoding="utf-8") as f:
                _lock(f)
                f.seek(0)
                text = f.read()
                data = json.loads(text) if text.strip() else {}
                if not isinstance(data, dict):
                    raise StoreError(f"corrupt store {self.path}: top level is not an object")
                data.update(items)
                f.seek(0)
                f.truncate()
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
                _unlock(f)
        except (OSError, ValueError, TypeError) as exc:
            raise StoreError(f"cannot write {self.path}: {exc}") from exc
        log.debug("Store write → %s (%s)", self.path.name, ", ".join(items))
