"""
Chat feature: Schemas for conversation turns and chat requests.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class InlineMedia(BaseModel):
    """Base64 payload sent inline to the model (photo or attached document)."""
    data: str
    mime_type: str
    name: str | None = None

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


class AttachedFile(BaseModel):
    name: str
    mime_type: str


class ChatMessage(BaseModel):
    """One conversation turn.

    Assistant turns are created empty and filled while the answer streams in;
    `version` counts the mutations applied to the turn.
    """
    id: str
    role: Role
    content: str = ""
    timestamp: datetime
    image: str | None = None  # data URI
    files: list[AttachedFile] = []
    is_retrieved: bool = False
    version: int = 0


class ChatRequest(BaseModel):
    message: str = ""
    image: InlineMedia | None = None
    files: list[InlineMedia] = []


class MessagesResponse(BaseModel):
    messages: list[ChatMessage]
    is_typing: bool = False
    is_designing: bool = False
    retrieval_status: str = "idle"
