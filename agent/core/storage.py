"""Flat string-keyed storage backends.

Every backend maps string keys to string values, like a browser's
localStorage. Higher layers own serialization and namespacing.
"""

from __future__ import annotations

import json
import os
from typing import Dict, List, Optional, Protocol


class StorageError(RuntimeError):
    """Raised when the underlying store cannot complete an operation."""


class StorageQuotaExceeded(StorageError):
    pass


class Storage(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...

    def keys(self) -> List[str]:
        ...


class InMemoryStorage:
    """Dict-backed storage with an optional size quota (in characters)."""

    def __init__(self, initial: Optional[Dict[str, str]] = None, quota: Optional[int] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self.quota = quota

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"storage values must be strings, got {type(value).__name__}")
        if self.quota is not None:
            used = sum(len(k) + len(v) for k, v in self._data.items() if k != key)
            if used + len(key) + len(value) > self.quota:
                raise StorageQuotaExceeded(
                    f"Setting '{key}' would exceed the storage quota of {self.quota}"
                )
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data.keys())


class JsonFileStorage:
    """Storage persisted as one JSON object in a file.

    The whole file is rewritten on every mutation.
    """

    def __init__(self, path: str):
        self.path = path
        self._data: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Could not read storage file {self.path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise StorageError(f"Storage file {self.path} does not hold a JSON object")
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def _flush(self) -> None:
        directory = os.path.dirname(self.path)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            tmp_path = f"{self.path}.tmp"
            with open(tmp_path, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise StorageError(f"Could not write storage file {self.path}: {exc}") from exc

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"storage values must be strings, got {type(value).__name__}")
        previous = self._data.get(key)
        self._data[key] = value
        try:
            self._flush()
        except StorageError:
            # keep memory in line with what is on disk
            if previous is None:
                self._data.pop(key, None)
            else:
                self._data[key] = previous
            raise

    def remove(self, key: str) -> None:
        if key not in self._data:
            return
        previous = self._data.pop(key)
        try:
            self._flush()
        except StorageError:
            self._data[key] = previous
            raise

    def keys(self) -> List[str]:
        return list(self._data.keys())
