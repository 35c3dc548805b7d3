"""In-memory store holding every indexed document chunk."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from .config import config

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .models import DocumentChunk

logger = config.get_logger(__name__)


class ChunkStore:
    """Ordered, append-only chunk collection with bulk removal by source."""

    def __init__(self) -> None:
        self._chunks: list[DocumentChunk] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._chunks)

    def add_chunks(self, chunks: Iterable[DocumentChunk]) -> int:
        """Append chunks to the end of the store.

        Returns:
            Number of chunks added.
        """
        new_chunks = list(chunks)
        with self._lock:
            self._chunks.extend(new_chunks)
            total = len(self._chunks)
        logger.info(
            "Added %d chunks to knowledge base (%d total)", len(new_chunks), total
        )
        return len(new_chunks)

    def remove_source(self, source_id: str) -> int:
        """Remove every chunk belonging to ``source_id``.

        Returns:
            Number of chunks removed.
        """
        with self._lock:
            before = len(self._chunks)
            self._chunks = [c for c in self._chunks if c.source_id != source_id]
            removed = before - len(self._chunks)
        logger.info("Removed %d chunks with source id %s", removed, source_id)
        return removed

    def clear(self) -> None:
        """Drop all chunks."""
        with self._lock:
            self._chunks = []
        logger.info("All documents cleared from memory")

    def snapshot(self) -> list[DocumentChunk]:
        """Return a copy of the chunks in store order."""  # noqa: DOC201
        with self._lock:
            return list(self._chunks)

    def source_ids(self) -> list[str]:
        """Return distinct source ids in first-seen order."""  # noqa: DOC201
        with self._lock:
            return list(dict.fromkeys(c.source_id for c in self._chunks))
