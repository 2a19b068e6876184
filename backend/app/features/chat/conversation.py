"""
Chat feature: Conversation state.

Turns are kept in append order. User turns never change after they are
appended. At most one assistant turn (the sink) is open at a time; it is
mutated only through the explicit operations below, keyed by turn id, and
is frozen once the request that opened it calls `close`.
"""

import uuid
from datetime import datetime, timezone, timedelta

from app.core.exceptions import ConversationBusyError, TurnClosedError
from app.features.chat.schemas import AttachedFile, ChatMessage, Role
from app.features.vault.schemas import VaultEntry

VN_TZ = timezone(timedelta(hours=7))

GREETING = "Hãy hỏi **AI** dựa trên tài liệu đã tải."
RESTORED_GREETING = "Phiên cũ đã khôi phục."
RESTORED_PREFIX = "🕒 **[ĐÃ KHÔI PHỤC]**\n\n"


def _now() -> datetime:
    return datetime.now(VN_TZ)


class ConversationState:
    """Ordered turns plus the single open sink turn."""

    def __init__(self, greeting: bool = True):
        self._order: list[str] = []
        self._turns: dict[str, ChatMessage] = {}
        self._open_id: str | None = None
        if greeting:
            self._add(ChatMessage(id=uuid.uuid4().hex, role=Role.ASSISTANT, content=GREETING, timestamp=_now()))

    # ── Reads ────────────────────────────────────────────

    @property
    def messages(self) -> list[ChatMessage]:
        """Snapshot of all turns in append order."""
        return [self._turns[i].model_copy(deep=True) for i in self._order]

    @property
    def open_turn_id(self) -> str | None:
        return self._open_id

    def get(self, turn_id: str) -> ChatMessage:
        return self._turns[turn_id].model_copy(deep=True)

    # ── Appends ──────────────────────────────────────────

    def append_user(
        self,
        content: str,
        image: str | None = None,
        files: list[AttachedFile] | None = None,
    ) -> ChatMessage:
        turn = ChatMessage(
            id=uuid.uuid4().hex,
            role=Role.USER,
            content=content,
            timestamp=_now(),
            image=image,
            files=files or [],
        )
        self._add(turn)
        return turn.model_copy(deep=True)

    def open_assistant(self, is_retrieved: bool) -> ChatMessage:
        """Append the empty sink turn for the current request."""
        if self._open_id is not None:
            raise ConversationBusyError()
        turn = ChatMessage(
            id=uuid.uuid4().hex,
            role=Role.ASSISTANT,
            timestamp=_now(),
            is_retrieved=is_retrieved,
        )
        self._add(turn)
        self._open_id = turn.id
        return turn.model_copy(deep=True)

    # ── Sink mutations ───────────────────────────────────

    def append_content(self, turn_id: str, fragment: str) -> ChatMessage:
        turn = self._open(turn_id)
        turn.content += fragment
        turn.version += 1
        return turn.model_copy(deep=True)

    def replace_content(self, turn_id: str, text: str) -> ChatMessage:
        turn = self._open(turn_id)
        turn.content = text
        turn.version += 1
        return turn.model_copy(deep=True)

    def set_image(self, turn_id: str, image: str) -> ChatMessage:
        turn = self._open(turn_id)
        if turn.image is not None:
            raise ValueError(f"Image already set on turn {turn_id}")
        turn.image = image
        turn.version += 1
        return turn.model_copy(deep=True)

    def close(self, turn_id: str) -> ChatMessage:
        """Freeze the sink; later mutations raise TurnClosedError."""
        self._open(turn_id)
        self._open_id = None
        return self.get(turn_id)

    # ── Restore from vault ───────────────────────────────

    def restore(self, entry: VaultEntry) -> None:
        """Replace the conversation with an archived question/answer pair."""
        if self._open_id is not None:
            raise ConversationBusyError()
        self._order.clear()
        self._turns.clear()
        self._add(ChatMessage(id="start", role=Role.ASSISTANT, content=RESTORED_GREETING, timestamp=_now()))
        self._add(
            ChatMessage(
                id=f"restored-user-{entry.id}",
                role=Role.USER,
                content=entry.title,
                timestamp=entry.timestamp,
            )
        )
        self._add(
            ChatMessage(
                id=f"restored-assistant-{entry.id}",
                role=Role.ASSISTANT,
                content=f"{RESTORED_PREFIX}{entry.content}",
                timestamp=entry.timestamp,
                is_retrieved=True,
            )
        )

    # ── Internals ────────────────────────────────────────

    def _add(self, turn: ChatMessage) -> None:
        self._order.append(turn.id)
        self._turns[turn.id] = turn

    def _open(self, turn_id: str) -> ChatMessage:
        if turn_id != self._open_id:
            raise TurnClosedError(turn_id)
        return self._turns[turn_id]

    def __len__(self) -> int:
        return len(self._order)
