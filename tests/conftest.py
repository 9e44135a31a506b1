"""Shared fixtures: in-memory storage and a scripted responder."""

import pytest

from agent.core.memory import UserStore
from agent.core.storage import InMemoryStorage


class ScriptedResponder:
    """Responder fake that records calls and replays queued results."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def __call__(self, query, history):
        self.calls.append((query, list(history)))
        if not self.results:
            return {"output": f"echo: {query}", "error": None}
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def store(storage):
    return UserStore(storage)


@pytest.fixture
def responder():
    return ScriptedResponder()
