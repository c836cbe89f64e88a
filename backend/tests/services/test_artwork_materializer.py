"""Artwork Materializer — tests for base64 extraction over nested payloads.

Tests cover:
    - finalArtwork scenario: preview_url at the same position, base64 gone
    - N photos with one corrupt entry → N-1 materialized, corrupt one lacks preview_url
    - photos already carrying preview_url are not rewritten
    - unrecognized nested base64 keys stripped
    - fatal StorageError propagates, non-fatal is a soft failure
    - concurrent writes bounded by max_concurrency
"""

import asyncio
from pathlib import Path

import pytest

from app.core.artwork_payload import contains_base64_key
from app.core.errors import StorageError
from app.infrastructure.temp_file_store import SavedFile
from app.services.artwork_materializer import ArtworkMaterializer
from tests.services.sample_artwork import PNG_BASE64, PNG_DATA_URI


@pytest.fixture
def materializer(temp_store):
    return ArtworkMaterializer(temp_store, max_concurrency=2)


async def test_final_artwork_scenario(materializer, temp_store):
    data = {"finalArtwork": {"base64": PNG_DATA_URI, "fileName": "card.png"}}

    result = await materializer.materialize(data)

    url = result.data["finalArtwork"]["preview_url"]
    assert url.startswith("/temp/") and url.endswith("-card.png")
    assert "base64" not in result.data["finalArtwork"]
    assert result.data["finalArtwork"]["fileName"] == "card.png"
    assert temp_store.file_exists(temp_store.filename_from_url(url))
    assert data["finalArtwork"]["base64"] == PNG_DATA_URI  # input untouched


async def test_one_corrupt_photo_does_not_block_siblings(materializer):
    data = {"photos": [
        {"base64": PNG_BASE64, "fileName": "a.png"},
        {"base64": "%%% not base64 %%%", "fileName": "b.png"},
        {"base64": PNG_DATA_URI, "fileName": "c.png"},
    ]}

    result = await materializer.materialize(data)

    photos = result.data["photos"]
    assert "preview_url" in photos[0]
    assert "preview_url" not in photos[1]
    assert "preview_url" in photos[2]
    assert len(result.saved_files) == 2
    assert result.failed_nodes == ["$.photos[1]"]
    assert not contains_base64_key(result.data)


async def test_photo_with_preview_url_skipped(materializer):
    data = {"photos": [{"preview_url": "/temp/1-old.png", "base64": PNG_BASE64}]}

    result = await materializer.materialize(data)

    assert result.data["photos"] == [{"preview_url": "/temp/1-old.png"}]
    assert result.saved_files == []


async def test_unrecognized_base64_stripped_everywhere(materializer):
    data = {
        "meta": {"thumb": {"base64": PNG_BASE64}, "base64Data": "abc"},
        "list": [{"nested": [{"base64": "x"}]}],
        "text": "kept",
    }

    result = await materializer.materialize(data)

    assert not contains_base64_key(result.data)
    assert result.data["text"] == "kept"
    assert result.data["meta"] == {"thumb": {}}


async def test_deep_artwork_materialized(materializer):
    data = {"layers": [{"slot": 1, "image": {"base64": PNG_DATA_URI}}]}

    result = await materializer.materialize(data)

    layer = result.data["layers"][0]
    assert layer["slot"] == 1
    assert layer["image"]["preview_url"].endswith("-artwork.png")


async def test_convenience_urls_point_at_materialized_artwork(materializer):
    data = {
        "final_artwork": {"base64": PNG_DATA_URI, "fileName": "final.png"},
        "previewUrl": PNG_DATA_URI,
    }

    result = await materializer.materialize(data)

    assert result.data["previewUrl"] == result.data["final_artwork"]["preview_url"]


async def test_payload_without_base64_passes_through(materializer):
    data = {"fields": [{"field_id": "name", "value": "Ana"}]}
    result = await materializer.materialize(data)
    assert result.data == data
    assert result.saved_files == []


class _FailingSink:
    def __init__(self, fatal):
        self.fatal = fatal

    async def save_file(self, content, original_name):
        raise StorageError("No space left on device", "write", fatal=self.fatal)


async def test_fatal_storage_error_aborts():
    materializer = ArtworkMaterializer(_FailingSink(fatal=True))
    with pytest.raises(StorageError):
        await materializer.materialize({"image": {"base64": PNG_BASE64}})


async def test_non_fatal_storage_error_is_soft():
    materializer = ArtworkMaterializer(_FailingSink(fatal=False))
    result = await materializer.materialize({"image": {"base64": PNG_BASE64}})
    assert result.data == {"image": {}}
    assert result.failed_nodes == ["$.image"]


class _SlowSink:
    def __init__(self):
        self.in_flight = 0
        self.peak = 0
        self.count = 0

    async def save_file(self, content, original_name):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        await asyncio.sleep(0.01)
        self.in_flight -= 1
        self.count += 1
        filename = f"{self.count}-{original_name}"
        return SavedFile(
            filename=filename, url=f"/temp/{filename}",
            path=Path("/nowhere") / filename, size=len(content),
        )


async def test_concurrent_writes_bounded():
    sink = _SlowSink()
    materializer = ArtworkMaterializer(sink, max_concurrency=3)
    data = {"photos": [{"base64": PNG_BASE64} for _ in range(10)]}

    result = await materializer.materialize(data)

    assert len(result.saved_files) == 10
    assert sink.peak == 3
