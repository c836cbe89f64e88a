"""Artwork Materializer — replaces inline base64 artwork with temp-file URLs.

Invariants:
    - The returned tree has no `base64`/`base64Data` key at any depth, whether
      each node's write succeeded or not
    - Successful nodes gain `preview_url` at the same position; failed nodes
      simply lack it (soft failure, logged, recorded in failed_nodes)
    - Siblings are independent: one corrupt photo never blocks the others
    - At most min(max_concurrency, base64 node count) writes in flight per payload
    - Fatal StorageError (disk full, read-only fs) propagates and aborts the caller
    - The input tree is never mutated

Design Decisions:
    - asyncio.gather over a depth-first walk, bounded by one Semaphore per call:
      concurrency is per payload, so one large basket cannot starve other requests
      of the pool and no state survives between calls
    - Writes go through FileSink (core/repository_protocols.py): tests can pass any
      object with save_file
    - `photos` elements that already carry preview_url are left as they are, so a
      re-submitted customization never writes the same photo twice
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from app.core.artwork_payload import (
    ARTWORK_LIST_KEYS, BASE64_KEYS,
    artwork_filename, count_base64_nodes, decode_base64_payload,
    has_inline_payload, is_artwork_key, resolve_convenience_urls,
    strip_base64_keys,
)
from app.core.errors import MaterializationError, StorageError
from app.core.repository_protocols import FileSink, SavedFileLike

logger = logging.getLogger(__name__)


@dataclass
class MaterializedPayload:
    data: Any
    saved_files: list[SavedFileLike] = field(default_factory=list)
    failed_nodes: list[str] = field(default_factory=list)


@dataclass
class _Run:
    """Per-call state: the write gate and what happened so far."""
    semaphore: asyncio.Semaphore
    saved: list[SavedFileLike] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class ArtworkMaterializer:
    """Walks a customization tree and writes every inline artwork to the sink."""

    def __init__(self, sink: FileSink, max_concurrency: int = 4):
        self.sink = sink
        self.max_concurrency = max(1, max_concurrency)

    async def materialize(self, data: Any) -> MaterializedPayload:
        total = count_base64_nodes(data)
        if total == 0:
            return MaterializedPayload(
                data=strip_base64_keys(resolve_convenience_urls(data)),
            )

        run = _Run(semaphore=asyncio.Semaphore(min(self.max_concurrency, total)))
        walked = await self._walk(data, "$", run)
        result = MaterializedPayload(
            data=strip_base64_keys(resolve_convenience_urls(walked)),
            saved_files=run.saved,
            failed_nodes=run.failed,
        )
        logger.info(
            f"Materialized {len(run.saved)}/{total} artwork node(s)",
            extra={"failed": len(run.failed)},
        )
        return result

    # ─── Walk ────────────────────────────────────────────────────

    async def _walk(self, node: Any, path: str, run: _Run) -> Any:
        if isinstance(node, list):
            return list(await asyncio.gather(*(
                self._walk(item, f"{path}[{i}]", run)
                for i, item in enumerate(node)
            )))
        if not isinstance(node, dict):
            return node

        keys = list(node)
        values = await asyncio.gather(*(
            self._visit(key, node[key], f"{path}.{key}", run) for key in keys
        ))
        return dict(zip(keys, values))

    async def _visit(self, key: str, value: Any, path: str, run: _Run) -> Any:
        if key in ARTWORK_LIST_KEYS and isinstance(value, list):
            return list(await asyncio.gather(*(
                self._visit_list_item(key, item, f"{path}[{i}]", run)
                for i, item in enumerate(value)
            )))
        if is_artwork_key(key) and has_inline_payload(value):
            return await self._materialize_node(value, path, run)
        return await self._walk(value, path, run)

    async def _visit_list_item(
        self, key: str, item: Any, path: str, run: _Run,
    ) -> Any:
        if key == "photos" and isinstance(item, dict) and isinstance(
            item.get("preview_url"), str,
        ):
            return item
        if has_inline_payload(item):
            return await self._materialize_node(item, path, run)
        return await self._walk(item, path, run)

    # ─── Write ───────────────────────────────────────────────────

    async def _materialize_node(self, node: dict, path: str, run: _Run) -> dict:
        rest = await self._walk(
            {k: v for k, v in node.items() if k not in BASE64_KEYS}, path, run,
        )
        try:
            decoded = decode_base64_payload(node["base64"])
            name = artwork_filename(node, decoded.mime_type)
            async with run.semaphore:
                saved = await self.sink.save_file(decoded.content, name)
        except MaterializationError as e:
            logger.warning(f"Skipping artwork at {path}: {e.message}")
            run.failed.append(path)
            return rest
        except StorageError as e:
            if e.fatal:
                raise
            logger.warning(f"Skipping artwork at {path}: {e.message}")
            run.failed.append(path)
            return rest

        run.saved.append(saved)
        rest["preview_url"] = saved.url
        return rest
