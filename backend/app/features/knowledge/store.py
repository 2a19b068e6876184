"""
Knowledge feature: In-process knowledge store.

Append-only. Written only by the ingestion pipeline's completion edge,
read by the retrieval service. All access happens on the event loop thread,
so no locking is done here.
"""

import logging
from collections.abc import Iterable

from app.features.knowledge.schemas import KnowledgeChunk

logger = logging.getLogger(__name__)


class KnowledgeStore:
    """Chunk id -> chunk mapping that preserves insertion order."""

    def __init__(self):
        self._chunks: dict[str, KnowledgeChunk] = {}

    def append(self, chunks: Iterable[KnowledgeChunk]) -> None:
        """Add chunks to the store.

        Raises:
            ValueError: If a chunk id is already stored (or repeated in the batch).
                Nothing from the batch is stored in that case.
        """
        batch = list(chunks)
        seen: set[str] = set()
        for chunk in batch:
            if chunk.id in self._chunks or chunk.id in seen:
                raise ValueError(f"Duplicate chunk id: {chunk.id}")
            seen.add(chunk.id)

        for chunk in batch:
            self._chunks[chunk.id] = chunk
        logger.info(f"✅ Stored {len(batch)} chunks (total {len(self._chunks)})")

    def all(self) -> tuple[KnowledgeChunk, ...]:
        """Read view in insertion order."""
        return tuple(self._chunks.values())

    def by_file(self, file_id: str) -> list[KnowledgeChunk]:
        return [c for c in self._chunks.values() if c.file_id == file_id]

    def reset(self) -> None:
        self._chunks.clear()

    def __len__(self) -> int:
        return len(self._chunks)
