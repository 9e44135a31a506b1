"""Per-user namespaced storage on top of a flat key-value backend.

Keys look like ``user_<user_id>_<logical_key>``. Callers without a user id
fall back to ``temp_<logical_key>``, which is shared and not durable per user.
Public operations are best effort: failures are logged and turned into a
default, never raised.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from agent.core.storage import Storage


logger = logging.getLogger("chatbot.memory")

USER_PREFIX = "user_"
TEMP_PREFIX = "temp_"
DELIMITER = "_"


class ReadStatus(str, Enum):
    FOUND = "found"
    ABSENT = "absent"
    CORRUPTED = "corrupted"
    FAILED = "failed"


@dataclass(frozen=True)
class ReadResult:
    status: ReadStatus
    value: Any = None

    @property
    def found(self) -> bool:
        return self.status is ReadStatus.FOUND


def user_prefix(user_id: str) -> str:
    return f"{USER_PREFIX}{user_id}{DELIMITER}"


def derive_key(user_id: Optional[str], logical_key: str) -> str:
    if not user_id:
        logger.warning("derive_key: no user id, using temporary key for %s", logical_key)
        return f"{TEMP_PREFIX}{logical_key}"
    return f"{user_prefix(user_id)}{logical_key}"


class UserStore:
    def __init__(self, storage: Storage):
        self.storage = storage

    def put(self, user_id: Optional[str], logical_key: str, value: Any) -> None:
        """Serialize and store ``value``. Raises on failure."""
        self.storage.set(derive_key(user_id, logical_key), json.dumps(value))

    def write(self, user_id: Optional[str], logical_key: str, value: Any) -> None:
        try:
            self.put(user_id, logical_key, value)
        except Exception as exc:
            logger.error("Error saving user data for key %s: %s", logical_key, exc)

    def lookup(self, user_id: Optional[str], logical_key: str, default: Any = None) -> ReadResult:
        """Read a value and report whether it was found, absent or unreadable."""
        key = derive_key(user_id, logical_key)
        try:
            raw = self.storage.get(key)
        except Exception as exc:
            logger.error("Error getting user data for key %s: %s", key, exc)
            return ReadResult(ReadStatus.FAILED, default)
        if not raw:
            return ReadResult(ReadStatus.ABSENT, default)
        try:
            return ReadResult(ReadStatus.FOUND, json.loads(raw))
        except ValueError as exc:
            logger.error("Corrupted user data under %s: %s", key, exc)
            return ReadResult(ReadStatus.CORRUPTED, default)

    def read(self, user_id: Optional[str], logical_key: str, default: Any = None) -> Any:
        return self.lookup(user_id, logical_key, default).value

    def delete(self, user_id: Optional[str], logical_key: str) -> None:
        try:
            self.storage.remove(derive_key(user_id, logical_key))
        except Exception as exc:
            logger.error("Error removing user data for key %s: %s", logical_key, exc)

    def clear_all(self, user_id: Optional[str]) -> int:
        """Delete every record of ``user_id``. Returns how many keys were removed."""
        if not user_id:
            logger.warning("clear_all called without a user id, nothing to clear")
            return 0
        prefix = user_prefix(user_id)
        removed = 0
        try:
            for key in self.storage.keys():
                if key.startswith(prefix):
                    self.storage.remove(key)
                    removed += 1
        except Exception as exc:
            logger.error("Error clearing user data for %s: %s", user_id, exc)
            return removed
        logger.info("User data cleared for %s (%s keys)", user_id, removed)
        return removed
