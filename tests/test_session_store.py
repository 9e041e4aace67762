"""Tests for best-effort session persistence."""

from __future__ import annotations

import json

from lingoraft.storage import STORAGE_KEY, InMemorySessionStore, JsonFileSessionStore


def test_json_store_round_trip(temp_dir):
    path = temp_dir / "nested" / "session.json"
    store = JsonFileSessionStore(path)
    state = {"mode": "chat", "completions": {}, "message_count": 3}

    assert store.load() is None
    store.save(state)

    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8")) == {STORAGE_KEY: state}
    assert store.load() == state


def test_json_store_ignores_other_keys(temp_dir):
    path = temp_dir / "session.json"
    JsonFileSessionStore(path, storage_key="older_key").save({"mode": "chat"})

    assert JsonFileSessionStore(path).load() is None


def test_json_store_tolerates_bad_content(temp_dir):
    path = temp_dir / "session.json"
    store = JsonFileSessionStore(path)

    path.write_text("{not json", encoding="utf-8")
    assert store.load() is None

    path.write_text("[1, 2, 3]", encoding="utf-8")
    assert store.load() is None

    path.write_text(json.dumps({STORAGE_KEY: "text"}), encoding="utf-8")
    assert store.load() is None


def test_json_store_clear(temp_dir):
    path = temp_dir / "session.json"
    store = JsonFileSessionStore(path)
    store.save({"mode": "chat"})

    store.clear()
    assert not path.exists()
    # clearing twice is fine
    store.clear()


def test_json_store_never_raises_on_directory(temp_dir):
    store = JsonFileSessionStore(temp_dir)

    assert store.load() is None
    store.save({"mode": "chat"})
    store.clear()


def test_in_memory_store_copies_state():
    store = InMemorySessionStore()
    state = {"completions": {"a": {"completed": True}}}
    store.save(state)
    state["completions"]["a"]["completed"] = False

    loaded = store.load()
    assert loaded["completions"]["a"]["completed"] is True
    loaded["completions"].clear()
    assert store.load()["completions"]
    assert store.save_count == 1

    store.clear()
    assert store.load() is None
