"""Artwork Payload Helpers — pure inspection and decoding of customer JSON trees.

Invariants:
    - All functions are PURE: no IO, no async, no filesystem
    - decode_base64_payload accepts raw base64 and data:<mime>;base64,<payload> URIs,
      raises MaterializationError on anything else (strict alphabet, non-empty)
    - strip_base64_keys returns a new tree with no `base64`/`base64Data` key at any depth

Design Decisions:
    - Key-name detection lives here so the materializer (shell) only orchestrates writes
    - Trees are copied, never mutated: callers keep the original for logging/diffing
"""

import base64
import binascii
import mimetypes
import re
from dataclasses import dataclass
from typing import Any

from app.core.errors import MaterializationError

BASE64_KEYS = frozenset({"base64", "base64Data"})
ARTWORK_KEYS = frozenset({"artwork", "finalArtwork", "final_artwork", "image"})
ARTWORK_LIST_KEYS = frozenset({"photos", "finalArtworks", "final_artworks"})
CONVENIENCE_URL_KEYS = ("previewUrl", "highQualityUrl")
FILENAME_KEYS = ("fileName", "filename", "original_name")

_DATA_URI = re.compile(r"^data:(?P<mime>[^;,]*)(?:;[^,]*)?;base64,(?P<payload>.*)$", re.DOTALL)
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class DecodedArtwork:
    content: bytes
    mime_type: str | None


def is_artwork_key(key: str) -> bool:
    """Keys whose object value is an artwork candidate (`*base64*` or a known name)."""
    return key in ARTWORK_KEYS or "base64" in key.lower()


def has_inline_payload(node: Any) -> bool:
    return isinstance(node, dict) and isinstance(node.get("base64"), str)


def is_inline_image_uri(value: Any) -> bool:
    return isinstance(value, str) and value.startswith("data:image/")


def decode_base64_payload(raw: str) -> DecodedArtwork:
    """Decode raw base64 or a base64 data URI into bytes."""
    mime_type = None
    payload = raw.strip()
    if payload.startswith("data:"):
        match = _DATA_URI.match(payload)
        if not match:
            raise MaterializationError("Malformed data URI")
        mime_type = match.group("mime") or None
        payload = match.group("payload")
    payload = _WHITESPACE.sub("", payload)
    if not payload:
        raise MaterializationError("Empty base64 payload")
    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MaterializationError(f"Invalid base64 payload: {e}")
    if not content:
        raise MaterializationError("Empty base64 payload")
    return DecodedArtwork(content=content, mime_type=mime_type)


def artwork_filename(node: dict, mime_type: str | None) -> str:
    """Original file name for a node, with an extension derived from mime when missing."""
    name = next(
        (node[k] for k in FILENAME_KEYS if isinstance(node.get(k), str) and node[k].strip()),
        "artwork",
    )
    if "." not in name.rsplit("/", 1)[-1]:
        ext = mimetypes.guess_extension(mime_type or node.get("mimeType") or "") or ""
        name = f"{name}{ext}"
    return name


def count_base64_nodes(tree: Any) -> int:
    """Number of objects carrying a `base64` string anywhere in the tree."""
    if isinstance(tree, list):
        return sum(count_base64_nodes(item) for item in tree)
    if isinstance(tree, dict):
        own = 1 if has_inline_payload(tree) else 0
        return own + sum(count_base64_nodes(v) for v in tree.values())
    return 0


def contains_base64_key(tree: Any) -> bool:
    if isinstance(tree, list):
        return any(contains_base64_key(item) for item in tree)
    if isinstance(tree, dict):
        return any(
            key in BASE64_KEYS or contains_base64_key(value)
            for key, value in tree.items()
        )
    return False


def strip_base64_keys(tree: Any) -> Any:
    """Copy of tree without any `base64`/`base64Data` key, at any depth."""
    if isinstance(tree, list):
        return [strip_base64_keys(item) for item in tree]
    if isinstance(tree, dict):
        return {
            key: strip_base64_keys(value)
            for key, value in tree.items()
            if key not in BASE64_KEYS
        }
    return tree


def collect_preview_urls(tree: Any) -> list[str]:
    """Every `preview_url` string in the tree, depth-first, in document order."""
    urls: list[str] = []
    if isinstance(tree, list):
        for item in tree:
            urls.extend(collect_preview_urls(item))
    elif isinstance(tree, dict):
        for key, value in tree.items():
            if key == "preview_url" and isinstance(value, str):
                urls.append(value)
            else:
                urls.extend(collect_preview_urls(value))
    return urls


def primary_artwork_url(tree: Any) -> str | None:
    """URL of the main finished artwork at the root: final artwork, else first of the list."""
    if not isinstance(tree, dict):
        return None
    for key in ("final_artwork", "finalArtwork"):
        node = tree.get(key)
        if isinstance(node, dict) and isinstance(node.get("preview_url"), str):
            return node["preview_url"]
    for key in ("final_artworks", "finalArtworks"):
        nodes = tree.get(key)
        if isinstance(nodes, list):
            for node in nodes:
                if isinstance(node, dict) and isinstance(node.get("preview_url"), str):
                    return node["preview_url"]
    return None


def resolve_convenience_urls(tree: Any) -> Any:
    """Replace inline data-URI previewUrl/highQualityUrl at the root.

    Points them at the materialized primary artwork when one exists,
    otherwise drops them.
    """
    if not isinstance(tree, dict):
        return tree
    resolved = dict(tree)
    replacement = primary_artwork_url(resolved)
    for key in CONVENIENCE_URL_KEYS:
        if is_inline_image_uri(resolved.get(key)):
            if replacement:
                resolved[key] = replacement
            else:
                del resolved[key]
    return resolved


def fold_final_artwork(
    data: dict, final_artwork: dict | None = None,
    final_artworks: list | None = None,
) -> dict:
    """Copy of data with top-level request artwork under final_artwork(s).

    Request-level fields win over keys of the same name already in data.
    """
    folded = dict(data or {})
    if final_artwork is not None:
        folded["final_artwork"] = final_artwork
    if final_artworks is not None:
        folded["final_artworks"] = final_artworks
    return folded
