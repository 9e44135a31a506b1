"""Client-side chat state for one signed-in user.

Conversations and their messages live in the user's namespace of the local
store; the model is reached through an injected responder.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from agent.agent import respond
from agent.core.memory import UserStore
from agent.core.migration import CHATS_KEY, chat_key, migrate_legacy_data
from agent.core.storage import JsonFileStorage
from config.settings import get_settings


logger = logging.getLogger("chatbot.session")

Responder = Callable[[str, List[dict]], Dict[str, Optional[str]]]


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _usable_chats(chats: Any) -> List[Dict[str, Any]]:
    """Keep the entries that look like chat summaries, with string ids."""
    if not isinstance(chats, list):
        return []
    usable = []
    for chat in chats:
        if not isinstance(chat, dict) or chat.get("id") in (None, ""):
            logger.warning("Ignoring malformed chat entry: %r", chat)
            continue
        usable.append(dict(chat, id=str(chat["id"])))
    return usable


def _message(kind: str, text: str, error: bool = False) -> Dict[str, Any]:
    message: Dict[str, Any] = {"type": kind, "text": text, "timeStamp": _timestamp()}
    if error:
        message["error"] = True
    return message


class ChatSession:
    def __init__(self, store: UserStore, responder: Responder = respond):
        self.store = store
        self.responder = responder
        self.user_id: Optional[str] = None
        self.chats: List[Dict[str, Any]] = []
        self.active_chat: Optional[str] = None
        self._migrated = False

    def sign_in(self, user_id: str) -> List[Dict[str, Any]]:
        self.user_id = user_id
        if not self._migrated:
            migrate_legacy_data(self.store, user_id)
            self._migrated = True
        self.chats = _usable_chats(self.store.read(user_id, CHATS_KEY, []))
        self.active_chat = self.chats[0]["id"] if self.chats else None
        logger.info("Signed in %s with %s chats", user_id, len(self.chats))
        return self.chats

    def sign_out(self, clear_data: bool = False) -> None:
        if clear_data and self.user_id:
            self.store.clear_all(self.user_id)
        self.user_id = None
        self.chats = []
        self.active_chat = None
        self._migrated = False

    def new_chat(self, initial_message: str = "") -> Optional[Dict[str, Any]]:
        if not self.user_id:
            logger.warning("new_chat called without a signed-in user")
            return None
        now = datetime.now()
        chat = {
            "id": str(uuid.uuid4()),
            "displayId": f"Chat {now.strftime('%d/%m/%Y')} {now.strftime('%H:%M:%S')}",
            "messages": [_message("prompt", initial_message)] if initial_message else [],
        }
        self.chats = [chat] + self.chats
        self.store.write(self.user_id, CHATS_KEY, self.chats)
        self.store.write(self.user_id, chat_key(chat["id"]), chat["messages"])
        self.active_chat = chat["id"]
        return chat

    def select_chat(self, chat_id: str) -> bool:
        if not any(chat["id"] == chat_id for chat in self.chats):
            logger.warning("select_chat: unknown chat %s", chat_id)
            return False
        self.active_chat = chat_id
        return True

    def messages(self, chat_id: Optional[str] = None) -> List[Dict[str, Any]]:
        chat_id = chat_id or self.active_chat
        if not self.user_id or not chat_id:
            return []
        messages = self.store.read(self.user_id, chat_key(chat_id), [])
        return messages if isinstance(messages, list) else []

    def delete_chat(self, chat_id: str) -> None:
        if not self.user_id:
            return
        self.chats = [chat for chat in self.chats if chat["id"] != chat_id]
        self.store.write(self.user_id, CHATS_KEY, self.chats)
        self.store.delete(self.user_id, chat_key(chat_id))
        if chat_id == self.active_chat:
            self.active_chat = self.chats[0]["id"] if self.chats else None

    def send_message(self, text: str) -> Optional[Dict[str, Any]]:
        """Send ``text`` in the active chat and return the reply message.

        Upstream failures come back as a response message flagged with
        ``error`` instead of an exception.
        """
        if not text or not text.strip():
            return None
        if not self.user_id:
            logger.warning("send_message called without a signed-in user")
            return None
        if not self.active_chat and self.new_chat() is None:
            return None

        chat_id = self.active_chat
        history = self.messages(chat_id)
        updated = history + [_message("prompt", text)]
        self.store.write(self.user_id, chat_key(chat_id), updated)

        try:
            result = self.responder(text, history)
        except Exception as exc:
            logger.exception("Responder failed: %s", exc)
            result = {"output": "", "error": str(exc)}
        if not isinstance(result, dict):
            logger.error("Responder returned %r instead of a dict", result)
            result = {"output": "", "error": "invalid response from model"}

        output = str(result.get("output") or "").strip()
        error_text = result.get("error")
        if error_text or not output:
            logger.warning("Model call failed: %s", error_text)
            reply = _message("response", f"Error: {error_text or 'empty response'}", error=True)
        else:
            reply = _message("response", output)

        self.store.write(self.user_id, chat_key(chat_id), updated + [reply])
        return reply


def open_session(path: Optional[str] = None, responder: Responder = respond) -> ChatSession:
    """Build a session over the on-disk store at ``path`` (defaults to settings)."""
    storage = JsonFileStorage(path or get_settings().storage_path)
    return ChatSession(UserStore(storage), responder=responder)
