"""Key-value storage backend tests."""

from __future__ import annotations

import pytest

from modules.errors import StorageError
from modules.services.storage_service import FileStorage, MemoryStorage


def test_memory_storage_basic_operations():
    storage = MemoryStorage()

    assert storage.get("qrHistory") is None
    storage.set("qrHistory", "[]")
    assert storage.get("qrHistory") == "[]"
    storage.remove("qrHistory")
    storage.remove("qrHistory")
    assert storage.get("qrHistory") is None


def test_memory_storage_quota_counts_other_keys():
    storage = MemoryStorage(quota_bytes=10)
    storage.set("a", "12345")

    storage.set("a", "1234567890")
    with pytest.raises(StorageError):
        storage.set("b", "x")


def test_file_storage_round_trip(tmp_path):
    storage = FileStorage(tmp_path / "data")

    assert storage.get("qrHistory") is None
    storage.set("qrHistory", '[{"text": "ñandú"}]')

    assert (tmp_path / "data" / "qrHistory.json").exists()
    assert storage.get("qrHistory") == '[{"text": "ñandú"}]'


def test_file_storage_replaces_whole_value(tmp_path):
    storage = FileStorage(tmp_path)
    storage.set("qrHistory", "first value that is long")
    storage.set("qrHistory", "second")

    assert storage.get("qrHistory") == "second"
    assert [p.name for p in tmp_path.iterdir()] == ["qrHistory.json"]


def test_file_storage_quota_keeps_previous_value(tmp_path):
    storage = FileStorage(tmp_path, quota_bytes=16)
    storage.set("qrHistory", "ok")

    with pytest.raises(StorageError):
        storage.set("qrHistory", "x" * 17)

    assert storage.get("qrHistory") == "ok"


def test_file_storage_remove_is_idempotent(tmp_path):
    storage = FileStorage(tmp_path)
    storage.set("qrHistory", "[]")

    storage.remove("qrHistory")
    storage.remove("qrHistory")

    assert storage.get("qrHistory") is None


def test_file_storage_rejects_path_like_keys(tmp_path):
    storage = FileStorage(tmp_path)

    with pytest.raises(ValueError):
        storage.set("../escape", "[]")


def test_file_storage_write_error_becomes_storage_error(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file", encoding="utf-8")
    storage = FileStorage(blocker / "nested", quota_bytes=None)

    with pytest.raises(StorageError):
        storage.set("qrHistory", "[]")


def test_lone_surrogate_is_rejected_as_storage_error(tmp_path):
    memory = MemoryStorage()
    files = FileStorage(tmp_path)

    with pytest.raises(StorageError):
        memory.set("k", "bad\ud800")
    with pytest.raises(StorageError):
        files.set("k", "bad\ud800")

    assert memory.get("k") is None
    assert files.get("k") is None
