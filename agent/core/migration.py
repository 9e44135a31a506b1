"""Move pre-namespacing records into a user's namespace.

Older clients wrote the conversation list under ``chats`` and each
conversation's messages under its bare id. The migration runs once per
session and is a no-op as soon as the user owns a namespaced ``chats``
record, so no "already migrated" marker is stored.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import List

from agent.core.memory import ReadStatus, UserStore


logger = logging.getLogger("chatbot.migration")

LEGACY_CHATS_KEY = "chats"
CHATS_KEY = "chats"


def chat_key(chat_id: str) -> str:
    return f"chat_{chat_id}"


@dataclass
class MigrationReport:
    migrated: bool = False
    conversations: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def migrate_legacy_data(store: UserStore, user_id: str) -> MigrationReport:
    report = MigrationReport()
    storage = store.storage
    try:
        legacy_raw = storage.get(LEGACY_CHATS_KEY)
        if not legacy_raw:
            return report

        existing = store.lookup(user_id, CHATS_KEY)
        if existing.status is not ReadStatus.ABSENT:
            logger.info("Skipping migration for %s: namespaced chats already present", user_id)
            return report

        chats = json.loads(legacy_raw)
        if not isinstance(chats, list):
            logger.error("Legacy chat list is not a list, skipping migration for %s", user_id)
            return report

        store.put(user_id, CHATS_KEY, chats)
    except Exception as exc:
        logger.error("Error during migration for %s: %s", user_id, exc)
        return report

    for chat in chats:
        chat_id = chat.get("id") if isinstance(chat, dict) else None
        if chat_id is None or chat_id == "":
            continue
        # localStorage keys are always strings
        chat_id = str(chat_id)
        try:
            legacy_messages = storage.get(chat_id)
            if not legacy_messages:
                continue
            store.put(user_id, chat_key(chat_id), json.loads(legacy_messages))
            storage.remove(chat_id)
            report.conversations.append(chat_id)
        except Exception as exc:
            logger.error("Error migrating conversation %s for %s: %s", chat_id, user_id, exc)
            report.failed.append(chat_id)

    try:
        storage.remove(LEGACY_CHATS_KEY)
    except Exception as exc:
        logger.error("Error removing legacy chat list: %s", exc)
    report.migrated = True
    logger.info(
        "Migration completed for user %s (%s conversations, %s failed)",
        user_id,
        len(report.conversations),
        len(report.failed),
    )
    return report
