"""
Tests for AnswerOrchestrator: fan-out of the text and image branches,
join before archiving, and independent degradation of each branch.
"""

import asyncio

import pytest

from app.core.exceptions import TurnClosedError
from app.features.chat.orchestrator import AnswerOrchestrator
from app.features.chat.prompts import (
    FILES_ANALYSIS_PROMPT,
    IMAGE_ANALYSIS_PROMPT,
    INFOGRAPHIC_FALLBACK_KNOWLEDGE,
    INFOGRAPHIC_FALLBACK_QUERY,
    TEXT_ERROR_MESSAGE,
)
from app.features.chat.schemas import ChatRequest, InlineMedia
from app.features.knowledge.schemas import ChunkMetadata, KnowledgeChunk
from app.features.knowledge.service import KnowledgeService
from app.features.vault.service import VaultService

from conftest import FAKE_IMAGE, FakeProvider

PHOTO = InlineMedia(data="/9j/4AAQ", mime_type="image/jpeg")
PDF = InlineMedia(data="JVBERi0=", mime_type="application/pdf", name="chuong1.pdf")
DOCX = InlineMedia(data="UEsDBA==", mime_type="application/msword", name="bai2.docx")


class RecordingVault(VaultService):
    """Vault that records what the request looked like when save ran."""

    def __init__(self, provider, conversation, tracking_enabled=True):
        super().__init__(tracking_enabled=tracking_enabled)
        self.provider = provider
        self.conversation = conversation
        self.calls = []

    def save(self, title, content):
        sink_id = self.conversation.open_turn_id
        self.calls.append(
            {
                "title": title,
                "content": content,
                "image_settled": self.provider.image_settled,
                "sink_open": sink_id is not None,
            }
        )
        return super().save(title, content)


def build(conversation, store, provider, vault=None):
    return AnswerOrchestrator(
        conversation, KnowledgeService(store), provider, vault or VaultService(tracking_enabled=False)
    )


class TestTextBranch:
    @pytest.mark.parametrize("text_delay, image_delay", [(0.0, 0.02), (0.005, 0.0), (0.0, 0.0)])
    async def test_final_content_is_exact_concatenation(self, conversation, store, text_delay, image_delay):
        fragments = ["Đồng ", "bằng ", "sông ", "Cửu Long ", "rộng ", "40.000 km²."]
        provider = FakeProvider(fragments=fragments, text_delay=text_delay, image_delay=image_delay)
        result = await build(conversation, store, provider).answer(ChatRequest(message="đồng bằng"))

        assert result.sink.content == "".join(fragments)
        assert result.sink.image == FAKE_IMAGE
        assert result.text_ok and result.image_ok

    async def test_error_mid_stream_replaces_partial_content(self, conversation, store):
        provider = FakeProvider(fragments=["Sông ", "Mê Kông là..."], fail_after=2)
        result = await build(conversation, store, provider).answer(ChatRequest(message="sông Mê Kông"))

        assert result.sink.content == TEXT_ERROR_MESSAGE
        assert result.text_ok is False
        # the image branch is not affected
        assert result.sink.image == FAKE_IMAGE

    async def test_error_before_first_fragment(self, conversation, store):
        provider = FakeProvider(fail_after=0)
        result = await build(conversation, store, provider).answer(ChatRequest(message="hỏi"))
        assert result.sink.content == TEXT_ERROR_MESSAGE

    async def test_empty_stream_leaves_empty_content(self, conversation, store):
        provider = FakeProvider(fragments=[], image=None)
        result = await build(conversation, store, provider).answer(ChatRequest(message="hỏi"))
        assert result.sink.content == ""
        assert result.sink.image is None
        assert result.text_ok is True


class TestImageBranch:
    async def test_image_failure_is_silent(self, conversation, store):
        provider = FakeProvider(image_error=RuntimeError("quota exceeded"))
        result = await build(conversation, store, provider).answer(ChatRequest(message="hỏi"))

        assert result.sink.image is None
        assert result.image_ok is False
        assert result.sink.content == "Sông Mê Kông dài 4350 km."

    async def test_no_image_returned(self, conversation, store):
        provider = FakeProvider(image=None)
        result = await build(conversation, store, provider).answer(ChatRequest(message="hỏi"))
        assert result.sink.image is None
        assert result.image_ok is False

    async def test_both_branches_fail(self, conversation, store):
        provider = FakeProvider(fail_after=1, image_error=RuntimeError("down"))
        orchestrator = build(conversation, store, provider)
        result = await orchestrator.answer(ChatRequest(message="hỏi"))

        assert result.sink.content == TEXT_ERROR_MESSAGE
        assert result.sink.image is None
        assert orchestrator.is_typing is False
        assert orchestrator.is_designing is False
        assert orchestrator.retrieval_status == "idle"


class TestJoinAndArchive:
    async def test_save_once_after_both_branches_settle(self, conversation, store):
        provider = FakeProvider(image_delay=0.02)
        vault = RecordingVault(provider, conversation)
        await build(conversation, store, provider, vault).answer(ChatRequest(message="sông Mê Kông"))

        assert len(vault.calls) == 1
        call = vault.calls[0]
        assert call["image_settled"] is True
        assert call["sink_open"] is False
        assert call["content"] == "Sông Mê Kông dài 4350 km."
        assert call["title"] == "sông Mê Kông"
        assert len(vault.list_entries()) == 1

    async def test_save_after_image_failure(self, conversation, store):
        provider = FakeProvider(image_error=RuntimeError("down"), image_delay=0.01)
        vault = RecordingVault(provider, conversation)
        await build(conversation, store, provider, vault).answer(ChatRequest(message="hỏi"))
        assert [c["image_settled"] for c in vault.calls] == [True]

    async def test_no_save_when_tracking_disabled(self, conversation, store, provider):
        vault = RecordingVault(provider, conversation, tracking_enabled=False)
        await build(conversation, store, provider, vault).answer(ChatRequest(message="hỏi"))
        assert vault.calls == []

    async def test_save_title_for_files_only(self, conversation, store, provider):
        vault = RecordingVault(provider, conversation)
        await build(conversation, store, provider, vault).answer(ChatRequest(files=[PDF, DOCX]))
        assert vault.calls[0]["title"] == "Học từ 2 tệp"

    async def test_sink_closed_after_join(self, conversation, store, provider):
        result = await build(conversation, store, provider).answer(ChatRequest(message="hỏi"))
        assert conversation.open_turn_id is None
        with pytest.raises(TurnClosedError):
            conversation.append_content(result.sink.id, "late")


class TestFallbacks:
    async def test_image_only_uses_image_analysis_prompt(self, conversation, store, provider):
        result = await build(conversation, store, provider).answer(ChatRequest(image=PHOTO))

        assert provider.text_calls[0]["question"] == IMAGE_ANALYSIS_PROMPT
        assert provider.text_calls[0]["image"] == PHOTO
        assert provider.image_calls == [(INFOGRAPHIC_FALLBACK_QUERY, INFOGRAPHIC_FALLBACK_KNOWLEDGE)]
        assert result.user_turn.content == "Phân tích ảnh chụp"
        assert result.user_turn.image == "data:image/jpeg;base64,/9j/4AAQ"

    async def test_files_only_uses_files_prompt(self, conversation, store, provider):
        result = await build(conversation, store, provider).answer(ChatRequest(files=[PDF, DOCX]))

        assert provider.text_calls[0]["question"] == FILES_ANALYSIS_PROMPT
        assert provider.text_calls[0]["files"] == [PDF, DOCX]
        assert result.user_turn.content == "Đã đính kèm 2 tệp"
        assert [f.name for f in result.user_turn.files] == ["chuong1.pdf", "bai2.docx"]

    async def test_query_without_context(self, conversation, store, provider):
        result = await build(conversation, store, provider).answer(ChatRequest(message="sông Mê Kông"))

        assert provider.text_calls[0]["question"] == "sông Mê Kông"
        assert provider.text_calls[0]["context"] == ""
        assert provider.image_calls == [("sông Mê Kông", INFOGRAPHIC_FALLBACK_KNOWLEDGE)]
        assert result.sink.is_retrieved is False


class TestGrounding:
    async def test_retrieved_context_passed_to_both_branches(self, conversation, store, provider):
        store.append([
            KnowledgeChunk(
                id="f1-1",
                file_id="f1",
                content="Sông Mê Kông chảy qua 6 quốc gia.",
                metadata=ChunkMetadata(topic="Sông ngòi"),
            )
        ])
        result = await build(conversation, store, provider).answer(
            ChatRequest(message="mê kông"), progress=40
        )

        assert result.sink.is_retrieved is True
        assert provider.text_calls[0]["context"] == "Sông Mê Kông chảy qua 6 quốc gia."
        assert provider.text_calls[0]["progress"] == 40
        assert provider.image_calls[0][1] == "Sông Mê Kông chảy qua 6 quốc gia."


class TestRequestLifecycle:
    async def test_empty_request_rejected_without_changes(self, conversation, store, provider):
        before = len(conversation)
        result = await build(conversation, store, provider).answer(ChatRequest(message="   "))
        assert result is None
        assert len(conversation) == before
        assert provider.text_calls == []

    async def test_second_request_rejected_while_busy(self, conversation, store):
        provider = FakeProvider(text_delay=0.01)
        orchestrator = build(conversation, store, provider)
        first = asyncio.create_task(orchestrator.answer(ChatRequest(message="một")))
        await asyncio.sleep(0)

        assert orchestrator.is_typing is True
        during = len(conversation)
        assert await orchestrator.answer(ChatRequest(message="hai")) is None
        assert len(conversation) == during

        await first
        assert orchestrator.is_typing is False
        assert [c["question"] for c in provider.text_calls] == ["một"]

    async def test_listener_sees_changes_in_order(self, conversation, store):
        provider = FakeProvider(fragments=["a", "b", "c"], image_delay=0.01)
        events = []
        await build(conversation, store, provider).answer(ChatRequest(message="hỏi"), listener=events.append)

        kinds = [e.kind for e in events]
        assert kinds[:2] == ["user", "sink"]
        assert kinds[-1] == "done"
        assert kinds.count("image") == 1
        assert [e.fragment for e in events if e.kind == "delta"] == ["a", "b", "c"]
        assert events[-1].turn.content == "abc"

    async def test_user_and_sink_appended_in_order(self, conversation, store, provider):
        result = await build(conversation, store, provider).answer(ChatRequest(message="hỏi"))
        ids = [m.id for m in conversation.messages]
        assert ids[-2:] == [result.user_turn.id, result.sink.id]
