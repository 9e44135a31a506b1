from __future__ import annotations

from typing import Any, Dict, List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder
from langchain_core.runnables import Runnable
from langchain_google_genai import ChatGoogleGenerativeAI

from agent.core.prompt import SYSTEM_PROMPT
from config.settings import get_settings


AI_ROLES = ("response", "assistant", "ai", "bot")


def build_chat_chain() -> Runnable:
    settings = get_settings()
    if not settings.google_api_key:
        raise RuntimeError(
            "GOOGLE_API_KEY not set. Please configure it in environment or .env"
        )

    llm = ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=settings.google_api_key,
        temperature=settings.temperature,
        top_p=settings.top_p,
    )

    prompt = ChatPromptTemplate.from_messages(
        [
            ("system", SYSTEM_PROMPT),
            MessagesPlaceholder("chat_history", optional=True),
            ("human", "{input}"),
        ]
    )

    return prompt | llm


def to_lc_messages(history: List[dict], limit: Optional[int] = None) -> List[BaseMessage]:
    """Convert stored chat messages (or role/content turns) into LangChain messages.

    Error placeholders and empty turns are dropped; only the last ``limit``
    turns are kept.
    """
    if limit is None:
        limit = get_settings().history_turns
    turns = [item for item in (history or []) if not item.get("error")]
    messages: List[BaseMessage] = []
    for item in turns[-limit:] if limit > 0 else []:
        role = (item.get("type") or item.get("role") or "").lower()
        content = item.get("text") or item.get("content") or ""
        if not content:
            continue
        if role in AI_ROLES:
            messages.append(AIMessage(content=content))
        else:
            # Default unknown to HumanMessage
            messages.append(HumanMessage(content=content))
    return messages


def _message_text(result: Any) -> str:
    content = getattr(result, "content", result)
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, dict):
                parts.append(part.get("text") or "")
            else:
                parts.append(str(part))
        content = "".join(parts)
    if content is None:
        return ""
    return str(content).strip()


def run_chat(chain: Runnable, payload: Dict) -> Dict[str, Optional[str]]:
    try:
        result = chain.invoke(payload)
    except Exception as exc:
        return {"output": "", "error": str(exc)}

    output = _message_text(result)
    if not output:
        return {"output": "", "error": "The model returned an empty response"}
    return {"output": output, "error": None}


def respond(query: str, history: Optional[List[dict]] = None) -> Dict[str, Optional[str]]:
    """Send ``query`` with recent ``history`` to the model. Never raises."""
    try:
        chain = build_chat_chain()
    except Exception as exc:
        return {"output": "", "error": str(exc)}

    payload: Dict[str, Any] = {"input": query}
    chat_history = to_lc_messages(history or [])
    if chat_history:
        # Only include chat_history key if we actually have turns
        payload["chat_history"] = chat_history
    return run_chat(chain, payload)
