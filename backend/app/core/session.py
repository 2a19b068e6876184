"""
Study session: the object graph behind one conversation.

Owns the knowledge store explicitly instead of a module-level global;
every component that reads or writes knowledge gets it from here.
"""

import asyncio

from app.background.document_tasks import IngestionPipeline
from app.config import Settings, get_settings
from app.features.chat.conversation import ConversationState
from app.features.chat.generation import GeminiGenerationProvider, GenerationProvider
from app.features.chat.orchestrator import AnswerOrchestrator
from app.features.knowledge.service import KnowledgeService
from app.features.knowledge.store import KnowledgeStore
from app.features.vault.service import VaultService


class StudySession:
    """Store, ingestion, retrieval, conversation, vault and orchestrator."""

    def __init__(
        self,
        settings: Settings | None = None,
        provider: GenerationProvider | None = None,
    ):
        self.settings = settings or get_settings()
        self.store = KnowledgeStore()
        self.knowledge = KnowledgeService(self.store)
        self.pipeline = IngestionPipeline(self.store, self.settings)
        self.conversation = ConversationState()
        self.vault = VaultService(self.settings.VAULT_TRACKING_ENABLED)
        self.provider = provider or GeminiGenerationProvider(self.store, self.settings)
        self.orchestrator = AnswerOrchestrator(
            self.conversation, self.knowledge, self.provider, self.vault
        )
        self._inflight: set[asyncio.Task] = set()

    def track(self, task: asyncio.Task) -> None:
        """Keep a reference to a running answer until it finishes.

        Answers are not cancelled when the client goes away.
        """
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

