"""Shared fixtures: settings without .env, fake generation providers, sessions."""

import asyncio

import pytest

from app.config import Settings
from app.core.session import StudySession
from app.features.chat.conversation import ConversationState
from app.features.chat.orchestrator import AnswerOrchestrator
from app.features.knowledge.service import KnowledgeService
from app.features.knowledge.store import KnowledgeStore
from app.features.vault.service import VaultService

FAKE_IMAGE = "data:image/png;base64,iVBORw0KGgo="


class FakeProvider:
    """Scripted GenerationProvider.

    fail_after: raise after yielding this many fragments (None = never).
    """

    def __init__(
        self,
        fragments=("Sông ", "Mê Kông ", "dài 4350 km."),
        image=FAKE_IMAGE,
        fail_after=None,
        image_error=None,
        text_delay=0.0,
        image_delay=0.0,
    ):
        self.fragments = list(fragments)
        self.image = image
        self.fail_after = fail_after
        self.image_error = image_error
        self.text_delay = text_delay
        self.image_delay = image_delay
        self.text_calls = []
        self.image_calls = []
        self.image_settled = False

    async def stream_text(self, question, context, progress, image=None, files=None):
        self.text_calls.append(
            {"question": question, "context": context, "progress": progress, "image": image, "files": files}
        )
        for index, fragment in enumerate(self.fragments):
            if self.fail_after is not None and index == self.fail_after:
                raise RuntimeError("provider connection reset")
            await asyncio.sleep(self.text_delay)
            yield fragment
        if self.fail_after is not None and self.fail_after >= len(self.fragments):
            raise RuntimeError("provider connection reset")

    async def generate_image(self, prompt, context_text):
        self.image_calls.append((prompt, context_text))
        try:
            await asyncio.sleep(self.image_delay)
            if self.image_error is not None:
                raise self.image_error
            return self.image
        finally:
            self.image_settled = True


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        LLM_API_KEY="test-key",
        INGEST_TICK_SECONDS=0.001,
        INGEST_PROGRESS_STEP=10,
        VAULT_TRACKING_ENABLED=False,
    )


@pytest.fixture()
def store() -> KnowledgeStore:
    return KnowledgeStore()


@pytest.fixture()
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture()
def vault() -> VaultService:
    return VaultService(tracking_enabled=False)


@pytest.fixture()
def conversation() -> ConversationState:
    return ConversationState()


@pytest.fixture()
def orchestrator(conversation, store, provider, vault) -> AnswerOrchestrator:
    return AnswerOrchestrator(conversation, KnowledgeService(store), provider, vault)


@pytest.fixture()
def session(settings, provider) -> StudySession:
    return StudySession(settings, provider=provider)
