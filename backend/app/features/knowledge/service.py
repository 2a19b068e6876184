"""
Knowledge feature: Service layer for context retrieval.

Plain case-insensitive substring match over chunk content and topic,
scanned in store order. No index, no ranking.
"""

import logging

from app.features.knowledge.store import KnowledgeStore

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n"


class KnowledgeService:
    """Retrieval over a session's knowledge store."""

    def __init__(self, store: KnowledgeStore):
        self.store = store

    def retrieve(self, query: str) -> str:
        """Build the grounding context for a query.

        Args:
            query: Raw user query. Empty means no retrieval.

        Returns:
            Contents of every chunk whose content or topic contains the query
            (case-folded), joined by a blank line in store order. Empty string
            when nothing matches.
        """
        if not query:
            return ""

        needle = query.casefold()
        matches = [
            chunk.content
            for chunk in self.store.all()
            if needle in chunk.content.casefold()
            or needle in chunk.metadata.topic.casefold()
        ]
        logger.info(f"🔎 Retrieval for '{query[:40]}': {len(matches)} chunk(s)")
        return CONTEXT_SEPARATOR.join(matches)
