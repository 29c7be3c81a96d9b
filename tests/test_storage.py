"""
Tests for the durable key/value stores.
"""

from __future__ import annotations

import json
from pathlib import Path

from adapters.storage import JsonFileStore, MemoryStore
from core.interfaces.storage import REGION_KEY, TOKEN_KEY, KeyValueStore


def test_json_store_survives_reopen(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "state.json"
    JsonFileStore(path).set(TOKEN_KEY, "abc")

    reopened = JsonFileStore(path)

    assert reopened.get(TOKEN_KEY) == "abc"
    assert json.loads(path.read_text(encoding="utf-8")) == {TOKEN_KEY: "abc"}


def test_json_store_remove(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path / "state.json")
    store.set(TOKEN_KEY, "abc")
    store.set(REGION_KEY, "en-US")

    store.remove(TOKEN_KEY)
    store.remove("missing")

    assert store.get(TOKEN_KEY) is None
    assert store.get(REGION_KEY) == "en-US"


def test_json_store_missing_or_corrupt_file_reads_empty(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    assert JsonFileStore(path).get(TOKEN_KEY) is None

    path.write_text("{not json", encoding="utf-8")
    store = JsonFileStore(path)

    assert store.get(TOKEN_KEY) is None
    store.set(REGION_KEY, "ja-JP")
    assert store.get(REGION_KEY) == "ja-JP"


def test_stores_satisfy_protocol(tmp_path: Path) -> None:
    assert isinstance(MemoryStore(), KeyValueStore)
    assert isinstance(JsonFileStore(tmp_path / "state.json"), KeyValueStore)


def test_memory_store_snapshot_is_a_copy() -> None:
    store = MemoryStore({REGION_KEY: "zh-CN"})
    snapshot = store.snapshot()
    snapshot[REGION_KEY] = "changed"

    assert store.get(REGION_KEY) == "zh-CN"
