"""
Chat feature: Chat API routes.
"""

import asyncio
import json
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.core.dependencies import get_session
from app.core.exceptions import (
    AppBaseError,
    ConversationBusyError,
    EmptyRequestError,
    VaultEntryNotFoundError,
    app_error_to_http,
)
from app.core.session import StudySession
from app.features.chat.orchestrator import TurnEvent
from app.features.chat.schemas import ChatRequest, MessagesResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _format_event(event: TurnEvent) -> str:
    """Serialize one conversation change as an SSE data line."""
    turn = event.turn
    match event.kind:
        case "delta":
            payload = {"type": "delta", "turn_id": turn.id, "content": event.fragment}
        case "image":
            payload = {"type": "image", "turn_id": turn.id, "image": turn.image}
        case _:
            payload = {"type": event.kind, "turn": turn.model_dump(mode="json")}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


async def _run_answer(session: StudySession, data: ChatRequest, queue: asyncio.Queue):
    try:
        result = await session.orchestrator.answer(
            data,
            progress=session.pipeline.global_progress(),
            listener=queue.put_nowait,
        )
        if result is None:
            # Lost the race with another request that started first.
            raise ConversationBusyError()
    except AppBaseError as e:
        logger.warning(f"⚠️ Chat request rejected: {e.message}")
        queue.put_nowait({"type": "error", "error": e.message, "detail": e.detail})
    finally:
        queue.put_nowait(None)


@router.post("")
async def chat(data: ChatRequest, session: StudySession = Depends(get_session)):
    """Answer a question as SSE: user, sink, delta*, image?, done."""
    if not data.message.strip() and data.image is None and not data.files:
        raise app_error_to_http(EmptyRequestError(), 400)
    if session.orchestrator.is_typing:
        raise app_error_to_http(ConversationBusyError(), 409)

    queue: asyncio.Queue = asyncio.Queue()
    # Detached from the response: a client disconnect does not cancel the answer.
    session.track(asyncio.create_task(_run_answer(session, data, queue)))

    async def generate_chat_stream():
        while True:
            item = await queue.get()
            if item is None:
                break
            if isinstance(item, TurnEvent):
                yield _format_event(item)
            else:
                yield f"data: {json.dumps(item, ensure_ascii=False)}\n\n"

    return StreamingResponse(generate_chat_stream(), media_type="text/event-stream")


@router.get("/messages", response_model=MessagesResponse)
async def get_messages(session: StudySession = Depends(get_session)):
    """Current conversation, including the partially written answer if any."""
    orchestrator = session.orchestrator
    return MessagesResponse(
        messages=session.conversation.messages,
        is_typing=orchestrator.is_typing,
        is_designing=orchestrator.is_designing,
        retrieval_status=orchestrator.retrieval_status,
    )


@router.post("/restore/{entry_id}", response_model=MessagesResponse)
async def restore_from_vault(entry_id: str, session: StudySession = Depends(get_session)):
    """Reopen an archived answer as the current conversation."""
    entry = session.vault.get(entry_id)
    if entry is None:
        raise app_error_to_http(VaultEntryNotFoundError(entry_id), 404)
    try:
        session.conversation.restore(entry)
    except ConversationBusyError as e:
        raise app_error_to_http(e, 409)
    return MessagesResponse(messages=session.conversation.messages)
