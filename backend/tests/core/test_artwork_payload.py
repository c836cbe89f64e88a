"""Artwork Payload Helpers — tests for pure base64 detection, decoding and tree edits.

Tests cover:
    - decode_base64_payload: raw, data URI, whitespace, malformed, empty
    - key detection and node counting
    - strip_base64_keys removes base64/base64Data at any depth without mutating
    - convenience URL resolution
    - fold_final_artwork
"""

import pytest

from app.core.artwork_payload import (
    artwork_filename,
    collect_preview_urls,
    contains_base64_key,
    count_base64_nodes,
    decode_base64_payload,
    fold_final_artwork,
    is_artwork_key,
    is_inline_image_uri,
    primary_artwork_url,
    resolve_convenience_urls,
    strip_base64_keys,
)
from app.core.errors import MaterializationError

HELLO = "aGVsbG8="  # b"hello"


# ─── decode ──────────────────────────────────────────────────────

def test_decode_raw_base64():
    decoded = decode_base64_payload(HELLO)
    assert decoded.content == b"hello"
    assert decoded.mime_type is None


def test_decode_data_uri_keeps_mime():
    decoded = decode_base64_payload(f"data:image/png;base64,{HELLO}")
    assert decoded.content == b"hello"
    assert decoded.mime_type == "image/png"


def test_decode_tolerates_whitespace():
    assert decode_base64_payload("aGVs\nbG8=").content == b"hello"


@pytest.mark.parametrize("raw", [
    "not base64!!", "", "   ", "data:image/png;base64,", "data:image/png,abc",
])
def test_decode_rejects_bad_payloads(raw):
    with pytest.raises(MaterializationError):
        decode_base64_payload(raw)


# ─── detection ───────────────────────────────────────────────────

def test_artwork_keys():
    assert is_artwork_key("finalArtwork")
    assert is_artwork_key("image")
    assert is_artwork_key("coverBase64")
    assert not is_artwork_key("photos")
    assert not is_artwork_key("title")


def test_inline_image_uri():
    assert is_inline_image_uri("data:image/jpeg;base64,xx")
    assert not is_inline_image_uri("/temp/1-a.png")
    assert not is_inline_image_uri(None)


def test_count_base64_nodes_nested():
    tree = {
        "photos": [{"base64": HELLO}, {"preview_url": "/temp/x.png"}],
        "deep": {"inner": [{"image": {"base64": HELLO}}]},
        "base64": 42,
    }
    assert count_base64_nodes(tree) == 2


def test_artwork_filename_adds_extension_from_mime():
    assert artwork_filename({"fileName": "card"}, "image/png") == "card.png"
    assert artwork_filename({"fileName": "card.jpg"}, "image/png") == "card.jpg"
    assert artwork_filename({}, None) == "artwork"


# ─── strip ───────────────────────────────────────────────────────

def test_strip_removes_keys_at_any_depth():
    tree = {"a": {"base64": "x", "keep": 1}, "b": [{"base64Data": "y"}], "base64": "z"}
    stripped = strip_base64_keys(tree)
    assert stripped == {"a": {"keep": 1}, "b": [{}]}
    assert not contains_base64_key(stripped)


def test_strip_does_not_mutate_input():
    tree = {"a": {"base64": "x"}}
    strip_base64_keys(tree)
    assert tree == {"a": {"base64": "x"}}


# ─── URLs ────────────────────────────────────────────────────────

def test_collect_preview_urls_in_document_order():
    tree = {
        "final_artwork": {"preview_url": "/temp/1.png"},
        "photos": [{"preview_url": "/temp/2.png"}, {"other": True}],
    }
    assert collect_preview_urls(tree) == ["/temp/1.png", "/temp/2.png"]


def test_primary_artwork_prefers_final_artwork():
    tree = {
        "final_artworks": [{"preview_url": "/temp/list.png"}],
        "final_artwork": {"preview_url": "/temp/main.png"},
    }
    assert primary_artwork_url(tree) == "/temp/main.png"
    assert primary_artwork_url({"final_artworks": [{"preview_url": "/temp/l.png"}]}) == "/temp/l.png"


def test_convenience_urls_replaced_by_materialized_artwork():
    tree = {
        "final_artwork": {"preview_url": "/temp/main.png"},
        "previewUrl": "data:image/png;base64,xx",
        "highQualityUrl": "data:image/png;base64,yy",
    }
    resolved = resolve_convenience_urls(tree)
    assert resolved["previewUrl"] == "/temp/main.png"
    assert resolved["highQualityUrl"] == "/temp/main.png"


def test_convenience_urls_dropped_without_artwork():
    tree = {"previewUrl": "data:image/png;base64,xx", "note": "hi"}
    assert resolve_convenience_urls(tree) == {"note": "hi"}


def test_convenience_urls_kept_when_not_inline():
    tree = {"previewUrl": "https://cdn.example.com/a.png"}
    assert resolve_convenience_urls(tree) == tree


def test_fold_final_artwork():
    folded = fold_final_artwork(
        {"text": "hi", "final_artwork": {"old": True}},
        {"base64": HELLO}, [{"base64": HELLO}],
    )
    assert folded == {
        "text": "hi",
        "final_artwork": {"base64": HELLO},
        "final_artworks": [{"base64": HELLO}],
    }
    assert fold_final_artwork({"a": 1}) == {"a": 1}
