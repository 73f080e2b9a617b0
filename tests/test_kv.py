"""Tests for the key-value engines."""

import json

import pytest

from copyworx.kv import FileKeyValueStore, MemoryKeyValueStore, StorageFullError


@pytest.fixture(params=["memory", "file"])
def kv(request, tmp_path):
    if request.param == "memory":
        return MemoryKeyValueStore(capacity=100)
    return FileKeyValueStore(tmp_path / "kv.json", capacity=100)


def test_get_missing_returns_none(kv):
    assert kv.get_item("nope") is None


def test_set_get_remove(kv):
    kv.set_item("a", "1")
    assert kv.get_item("a") == "1"
    assert kv.keys() == ["a"]
    kv.remove_item("a")
    assert kv.get_item("a") is None
    assert kv.keys() == []


def test_usage_counts_keys_and_values(kv):
    kv.set_item("ab", "cde")
    assert kv.usage_bytes() == 5


def test_write_over_capacity_fails_and_keeps_old_value(kv):
    kv.set_item("a", "small")
    with pytest.raises(StorageFullError):
        kv.set_item("a", "x" * 200)
    assert kv.get_item("a") == "small"


def test_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "nested" / "kv.json"
    FileKeyValueStore(path).set_item("k", "v")
    assert FileKeyValueStore(path).get_item("k") == "v"


def test_file_store_unreadable_file_reads_empty(tmp_path):
    path = tmp_path / "kv.json"
    path.write_text("{not json")
    store = FileKeyValueStore(path)
    assert store.get_item("k") is None
    assert store.keys() == []


def test_file_store_non_object_reads_empty(tmp_path):
    path = tmp_path / "kv.json"
    path.write_text(json.dumps(["a", "b"]))
    assert FileKeyValueStore(path).keys() == []
