"""
Chat feature: Answer orchestration.

One request = one user turn + one sink turn. After retrieval, two branches
run concurrently against the sink:

  text branch   fragments are appended to the sink in arrival order; a failure
                replaces the content with TEXT_ERROR_MESSAGE
  image branch  at most one infographic is set on the sink; a failure or an
                empty result leaves the image unset

Both branches are awaited (join, not race) before the sink is closed, the
answer is archived and the progress flags are cleared. A failing branch
never cancels the other one.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from app.features.chat.conversation import ConversationState
from app.features.chat.generation import GenerationProvider
from app.features.chat.prompts import (
    INFOGRAPHIC_FALLBACK_KNOWLEDGE,
    INFOGRAPHIC_FALLBACK_QUERY,
    TEXT_ERROR_MESSAGE,
    archive_title,
    resolve_question,
    user_turn_label,
)
from app.features.chat.schemas import AttachedFile, ChatMessage, ChatRequest
from app.features.knowledge.service import KnowledgeService
from app.features.vault.schemas import VaultEntry
from app.features.vault.service import VaultService

logger = logging.getLogger(__name__)


@dataclass
class TurnEvent:
    """Observable change to the conversation during a request."""
    kind: str  # user | sink | delta | image | error | done
    turn: ChatMessage
    fragment: str | None = None


@dataclass
class AnswerResult:
    user_turn: ChatMessage
    sink: ChatMessage
    context: str
    text_ok: bool
    image_ok: bool
    saved: VaultEntry | None = None


Listener = Callable[[TurnEvent], None]


def _ignore(event: TurnEvent) -> None:
    pass


class AnswerOrchestrator:
    """Runs one request at a time against a conversation."""

    def __init__(
        self,
        conversation: ConversationState,
        knowledge: KnowledgeService,
        provider: GenerationProvider,
        vault: VaultService,
    ):
        self.conversation = conversation
        self.knowledge = knowledge
        self.provider = provider
        self.vault = vault

        self.is_typing = False
        self.is_designing = False
        self.retrieval_status = "idle"  # idle | searching | grounding

    async def answer(
        self,
        request: ChatRequest,
        progress: int | None = None,
        listener: Listener | None = None,
    ) -> AnswerResult | None:
        """Answer one user request.

        Args:
            request: Query text plus optional photo and attached files.
            progress: Global ingestion progress, None when nothing is loading.
            listener: Called synchronously for every change to the conversation.

        Returns:
            None, with nothing appended, when the request has no text, photo
            or file, or another request is still being answered. Generation
            failures never escape; they end up as degraded content on the sink.
        """
        notify = listener or _ignore
        query = request.message.strip()
        files = list(request.files)
        image = request.image

        if not query and image is None and not files:
            logger.info("⏭️ Ignoring empty request")
            return None
        if self.is_typing:
            logger.warning("⏳ Ignoring request while another answer is running")
            return None

        self.is_typing = True
        self.retrieval_status = "searching"
        try:
            user_turn = self.conversation.append_user(
                user_turn_label(query, image is not None, len(files)),
                image=image.to_data_uri() if image else None,
                files=[AttachedFile(name=f.name or "tệp", mime_type=f.mime_type) for f in files],
            )
            notify(TurnEvent("user", user_turn))

            context = self.knowledge.retrieve(query)
            self.retrieval_status = "grounding"

            sink = self.conversation.open_assistant(is_retrieved=bool(context))
            notify(TurnEvent("sink", sink))

            (accumulated, text_ok), image_ok = await asyncio.gather(
                self._text_branch(sink.id, query, context, progress, request, notify),
                self._image_branch(sink.id, query, context, notify),
            )

            final = self.conversation.close(sink.id)
            saved = None
            if self.vault.tracking_enabled:
                saved = self.vault.save(archive_title(query, len(files)), accumulated)
            notify(TurnEvent("done", final))

            logger.info(
                f"✅ Answer {final.id} done (text_ok={text_ok}, image_ok={image_ok}, "
                f"retrieved={final.is_retrieved})"
            )
            return AnswerResult(
                user_turn=user_turn,
                sink=final,
                context=context,
                text_ok=text_ok,
                image_ok=image_ok,
                saved=saved,
            )
        finally:
            if self.conversation.open_turn_id is not None:
                self.conversation.close(self.conversation.open_turn_id)
            self.is_typing = False
            self.is_designing = False
            self.retrieval_status = "idle"

    async def _text_branch(
        self,
        sink_id: str,
        query: str,
        context: str,
        progress: int | None,
        request: ChatRequest,
        notify: Listener,
    ) -> tuple[str, bool]:
        question = resolve_question(query, request.image is not None, bool(request.files))
        accumulated = ""
        try:
            async for fragment in self.provider.stream_text(
                question,
                context,
                progress,
                request.image,
                list(request.files) or None,
            ):
                if not fragment:
                    continue
                accumulated += fragment
                turn = self.conversation.append_content(sink_id, fragment)
                notify(TurnEvent("delta", turn, fragment))
        except Exception:
            logger.error(f"❌ Text branch failed for {sink_id}", exc_info=True)
            turn = self.conversation.replace_content(sink_id, TEXT_ERROR_MESSAGE)
            notify(TurnEvent("error", turn))
            return accumulated, False
        return accumulated, True

    async def _image_branch(self, sink_id: str, query: str, context: str, notify: Listener) -> bool:
        self.is_designing = True
        try:
            image = await self.provider.generate_image(
                query or INFOGRAPHIC_FALLBACK_QUERY,
                context or INFOGRAPHIC_FALLBACK_KNOWLEDGE,
            )
        except Exception:
            logger.error(f"❌ Image branch failed for {sink_id}", exc_info=True)
            return False
        finally:
            self.is_designing = False

        if not image:
            return False
        turn = self.conversation.set_image(sink_id, image)
        notify(TurnEvent("image", turn))
        return True
