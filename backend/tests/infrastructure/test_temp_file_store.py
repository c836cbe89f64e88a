"""Temp File Store — tests for the filesystem blob store.

Tests cover:
    - save_file naming, URL, exclusive create on collision
    - size limit as non-fatal StorageError
    - path traversal guard on every filename entry point
    - delete / list / TTL sweep with keep
"""

import os
import time

import pytest

from app.core.errors import InvalidFilenameError, StorageError
from app.infrastructure.temp_file_store import (
    TempFileStore, check_filename, sanitize_name,
)


@pytest.fixture
def store(tmp_path):
    return TempFileStore(tmp_path / "temp", url_prefix="temp/")


def _age(store, filename, hours):
    path = store.get_file_path(filename)
    past = time.time() - hours * 3600
    os.utime(path, (past, past))


# ─── Names ───────────────────────────────────────────────────────

def test_sanitize_name():
    assert sanitize_name("My Photo (1).PNG") == "my_photo__1_.png"
    assert sanitize_name("../../etc/passwd") == "etc_passwd"
    assert sanitize_name("") == "file"


@pytest.mark.parametrize("name", ["", "../x", "a/b", "a\\b", ".."])
def test_check_filename_rejects_traversal(name):
    with pytest.raises(InvalidFilenameError):
        check_filename(name)


# ─── save_file ───────────────────────────────────────────────────

async def test_save_file_returns_relative_url(store):
    saved = await store.save_file(b"hello", "card.png")
    assert saved.filename.endswith("-card.png")
    assert saved.filename.split("-", 1)[0].isdigit()
    assert saved.url == f"/temp/{saved.filename}"
    assert saved.path.read_bytes() == b"hello"
    assert saved.size == 5


async def test_save_file_never_overwrites(store, monkeypatch):
    monkeypatch.setattr(time, "time", lambda: 1700000000.0)
    first = await store.save_file(b"one", "card.png")
    second = await store.save_file(b"two", "card.png")
    assert first.filename == "1700000000000-card.png"
    assert second.filename == "1700000000000-card-1.png"
    assert first.path.read_bytes() == b"one"


async def test_save_file_over_limit_is_not_fatal(tmp_path):
    store = TempFileStore(tmp_path, max_bytes=3)
    with pytest.raises(StorageError) as exc:
        await store.save_file(b"toolong", "a.bin")
    assert exc.value.fatal is False
    assert store.list_files() == []


# ─── Read / delete ───────────────────────────────────────────────

async def test_filename_from_url_round_trip(store):
    saved = await store.save_file(b"x", "a.png")
    assert store.filename_from_url(saved.url) == saved.filename
    assert store.filename_from_url(f"https://shop.example{saved.url}?v=2") == saved.filename
    assert store.filename_from_url("https://cdn.example/other.png") is None
    assert store.filename_from_url("/temp/../secret") is None


async def test_delete_file(store):
    saved = await store.save_file(b"x", "a.png")
    assert store.delete_file(saved.filename) is True
    assert store.delete_file(saved.filename) is False
    with pytest.raises(InvalidFilenameError):
        store.delete_file("../a.png")


async def test_delete_files_counts(store):
    saved = await store.save_file(b"x", "a.png")
    assert store.delete_files([saved.filename, "missing.png", "../bad"]) == {
        "deleted": 1, "failed": 2,
    }


async def test_list_files_and_info(store):
    saved = await store.save_file(b"abc", "a.png")
    files = store.list_files()
    assert [f.filename for f in files] == [saved.filename]
    info = store.get_file_info(saved.filename).to_dict()
    assert info["size"] == 3
    assert info["ageMinutes"] == 0
    assert store.get_file_info("missing.png") is None


# ─── Sweep ───────────────────────────────────────────────────────

async def test_cleanup_old_files_respects_threshold_and_keep(store):
    old = await store.save_file(b"1", "old.png")
    kept = await store.save_file(b"2", "kept.png")
    fresh = await store.save_file(b"3", "fresh.png")
    _age(store, old.filename, 50)
    _age(store, kept.filename, 50)

    result = store.cleanup_old_files(48, keep=[kept.filename])

    assert result == {"deleted": 1, "failed": 0}
    assert not store.file_exists(old.filename)
    assert store.file_exists(kept.filename)
    assert store.file_exists(fresh.filename)
