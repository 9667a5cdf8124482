from __future__ import annotations

import asyncio
import json
import os

import pytest

from adapters.json_storage import JsonProcessedStore
from core.errors import CodeSourceError, StorageError
from core.license_keys import split_code_list


def test_load_creates_empty_file(tmp_path) -> None:
    store = JsonProcessedStore(str(tmp_path / "storage"))
    store.load()

    assert len(store) == 0
    with open(store.path, encoding="utf-8") as handle:
        assert json.load(handle) == []


def test_mark_processed_persists_immediately(tmp_path) -> None:
    store = JsonProcessedStore(str(tmp_path))
    store.load()
    store.mark_processed("a/1")
    store.mark_processed("a/1")
    store.mark_processed("s/2")

    reloaded = JsonProcessedStore(str(tmp_path))
    reloaded.load()
    assert reloaded.is_processed("a/1")
    assert reloaded.is_processed("s/2")
    assert not reloaded.is_processed("a/3")
    with open(store.path, encoding="utf-8") as handle:
        assert json.load(handle) == ["a/1", "s/2"]


def test_corrupt_file_is_fatal(tmp_path) -> None:
    (tmp_path / "processedLicenses").write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError):
        JsonProcessedStore(str(tmp_path)).load()


def test_non_array_file_is_fatal(tmp_path) -> None:
    (tmp_path / "processedLicenses").write_text('{"a/1": true}', encoding="utf-8")
    with pytest.raises(StorageError):
        JsonProcessedStore(str(tmp_path)).load()


def test_legacy_marker_backfills_and_is_deleted(tmp_path) -> None:
    (tmp_path / "lastlength").write_text("2\n", encoding="utf-8")
    store = JsonProcessedStore(str(tmp_path))
    store.load()
    store.mark_processed("a/1")

    async def fetch() -> list[str]:
        return ["a/1", "a/2", "a/3"]

    added = asyncio.run(store.migrate_legacy_marker(fetch))

    assert added == 1
    assert store.is_processed("a/2")
    assert not store.is_processed("a/3")
    assert not os.path.exists(store.marker_path)


@pytest.mark.parametrize("content", [None, "not a number"])
def test_missing_or_bad_marker_is_skipped(tmp_path, content) -> None:
    if content is not None:
        (tmp_path / "lastlength").write_text(content, encoding="utf-8")
    store = JsonProcessedStore(str(tmp_path))
    store.load()
    calls: list[int] = []

    async def fetch() -> list[str]:
        calls.append(1)
        return ["a/1"]

    assert asyncio.run(store.migrate_legacy_marker(fetch)) == 0
    assert calls == []
    assert len(store) == 0


def test_marker_kept_when_fetch_fails(tmp_path) -> None:
    (tmp_path / "lastlength").write_text("5", encoding="utf-8")
    store = JsonProcessedStore(str(tmp_path))
    store.load()

    async def fetch() -> list[str]:
        raise CodeSourceError("offline")

    assert asyncio.run(store.migrate_legacy_marker(fetch)) == 0
    assert os.path.exists(store.marker_path)


def test_legacy_marker_counts_duplicate_entries(tmp_path) -> None:
    (tmp_path / "lastlength").write_text("2", encoding="utf-8")
    store = JsonProcessedStore(str(tmp_path))
    store.load()

    async def fetch() -> list[str]:
        return split_code_list("a/1\na/1\na/2")

    added = asyncio.run(store.migrate_legacy_marker(fetch))

    assert added == 1
    assert store.is_processed("a/1")
    assert not store.is_processed("a/2")
