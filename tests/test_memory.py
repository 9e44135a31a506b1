"""Tests for per-user namespaced storage."""

import pytest

from agent.core.memory import ReadStatus, UserStore, derive_key
from agent.core.storage import InMemoryStorage, StorageQuotaExceeded


class BrokenStorage(InMemoryStorage):
    """Storage whose every call fails, like a browser with storage disabled."""

    def get(self, key):
        raise PermissionError("access denied")

    def set(self, key, value):
        raise StorageQuotaExceeded("quota exceeded")

    def remove(self, key):
        raise PermissionError("access denied")

    def keys(self):
        raise PermissionError("access denied")


def test_derive_key_namespaces_by_user():
    assert derive_key("u1", "chats") == "user_u1_chats"
    assert derive_key("u1", "chat_c1") == "user_u1_chat_c1"


def test_derive_key_distinct_pairs_do_not_collide():
    pairs = [("u1", "chats"), ("u2", "chats"), ("u1", "settings"), ("u10", "chats")]
    keys = {derive_key(user, key) for user, key in pairs}
    assert len(keys) == len(pairs)


@pytest.mark.parametrize("user_id", [None, ""])
def test_derive_key_falls_back_to_temp(user_id):
    key = derive_key(user_id, "chats")
    assert key == "temp_chats"
    assert "None" not in key


def test_write_then_read(store):
    value = [{"id": "c1", "displayId": "Chat 1", "messages": []}]
    store.write("u1", "chats", value)
    assert store.read("u1", "chats", []) == value
    assert store.storage.get("user_u1_chats") is not None


def test_read_never_written_returns_default(store):
    assert store.read("u1", "chats", []) == []
    assert store.read("u1", "chats") is None


def test_users_are_isolated(store):
    store.write("u1", "chats", ["mine"])
    assert store.read("u2", "chats", []) == []


def test_delete_then_read_returns_default(store):
    store.write("u1", "chats", [1, 2])
    store.delete("u1", "chats")
    assert store.read("u1", "chats", "default") == "default"
    # deleting again is not an error
    store.delete("u1", "chats")


def test_clear_all_only_touches_one_user(store, storage):
    store.write("u1", "chats", [1])
    store.write("u1", "chat_c1", [2])
    store.write("u2", "chats", [3])
    storage.set("chats", "[]")

    removed = store.clear_all("u1")

    assert removed == 2
    assert sorted(storage.keys()) == ["chats", "user_u2_chats"]


def test_clear_all_without_user_is_noop(store, storage):
    store.write("u1", "chats", [1])
    assert store.clear_all(None) == 0
    assert storage.keys() == ["user_u1_chats"]


def test_lookup_distinguishes_absent_and_corrupted(store, storage):
    storage.set("user_u1_bad", "{not json")

    absent = store.lookup("u1", "missing", [])
    corrupted = store.lookup("u1", "bad", [])

    assert absent.status is ReadStatus.ABSENT
    assert corrupted.status is ReadStatus.CORRUPTED
    assert absent.value == [] and corrupted.value == []
    assert store.read("u1", "bad", "fallback") == "fallback"


def test_lookup_found(store):
    store.write("u1", "flag", False)
    result = store.lookup("u1", "flag", True)
    assert result.found
    assert result.value is False


def test_empty_string_is_absent(store, storage):
    storage.set("user_u1_chats", "")
    assert store.lookup("u1", "chats").status is ReadStatus.ABSENT


def test_write_swallows_serialization_errors(store, storage):
    store.write("u1", "chats", {"bad": object()})
    assert storage.keys() == []


def test_put_raises_on_serialization_error(store):
    with pytest.raises(TypeError):
        store.put("u1", "chats", {"bad": object()})


def test_failures_never_propagate():
    store = UserStore(BrokenStorage())
    store.write("u1", "chats", [1])
    store.delete("u1", "chats")
    assert store.read("u1", "chats", []) == []
    assert store.lookup("u1", "chats").status is ReadStatus.FAILED
    assert store.clear_all("u1") == 0


def test_temp_namespace_used_without_user(store, storage):
    store.write(None, "chats", ["anon"])
    assert storage.get("temp_chats") == '["anon"]'
    assert store.read(None, "chats") == ["anon"]
