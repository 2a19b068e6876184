"""
Chat feature: Generation capability.

Two operations, both allowed to fail:
  - stream_text:    question + context (+ photo, + files) -> text fragments
  - generate_image: query + knowledge text -> one infographic (data URI) or None
"""

import base64
import logging
from collections.abc import AsyncIterator
from typing import Protocol

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from app.config import Settings, get_settings
from app.core.exceptions import ImageGenerationError, TextGenerationError
from app.core.llm_provider import create_image_client, create_llm
from app.features.chat.prompts import build_infographic_prompt, build_system_prompt
from app.features.chat.schemas import InlineMedia
from app.features.knowledge.store import KnowledgeStore

logger = logging.getLogger(__name__)


class GenerationProvider(Protocol):
    def stream_text(
        self,
        question: str,
        context: str,
        progress: int | None,
        image: InlineMedia | None = None,
        files: list[InlineMedia] | None = None,
    ) -> AsyncIterator[str]: ...

    async def generate_image(self, prompt: str, context_text: str) -> str | None: ...


def build_human_content(
    question: str,
    context: str,
    image: InlineMedia | None = None,
    files: list[InlineMedia] | None = None,
) -> list[dict]:
    """Content blocks for the user message: context, photo, files, question."""
    blocks: list[dict] = []
    if context:
        blocks.append({"type": "text", "text": f"Ngữ cảnh học liệu bổ trợ:\n{context}"})
    if image:
        blocks.append({"type": "image_url", "image_url": {"url": image.to_data_uri()}})
    for file in files or []:
        blocks.append({"type": "media", "mime_type": file.mime_type, "data": file.data})
    blocks.append({"type": "text", "text": f"Câu hỏi: {question}"})
    return blocks


def extract_text(content) -> str:
    """Text of a streamed chunk; thinking parts are dropped."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return ""


def extract_image(response) -> str | None:
    """First inline image of a google-genai response, as a data URI."""
    candidates = response.candidates or []
    if not candidates or candidates[0].content is None:
        return None
    for part in candidates[0].content.parts or []:
        if part.inline_data and part.inline_data.data:
            mime_type = part.inline_data.mime_type or "image/png"
            payload = base64.b64encode(part.inline_data.data).decode("ascii")
            return f"data:{mime_type};base64,{payload}"
    return None


class GeminiGenerationProvider:
    """Gemini text stream (LangChain) and infographic generation (google-genai)."""

    def __init__(
        self,
        store: KnowledgeStore,
        settings: Settings | None = None,
        llm: BaseChatModel | None = None,
        image_client=None,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self._llm = llm
        self._image_client = image_client

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = create_llm()
        return self._llm

    @property
    def image_client(self):
        if self._image_client is None:
            self._image_client = create_image_client()
        return self._image_client

    async def stream_text(
        self,
        question: str,
        context: str,
        progress: int | None,
        image: InlineMedia | None = None,
        files: list[InlineMedia] | None = None,
    ) -> AsyncIterator[str]:
        messages = [
            SystemMessage(content=build_system_prompt(progress, has_knowledge=len(self.store) > 0)),
            HumanMessage(content=build_human_content(question, context, image, files)),
        ]
        try:
            async for chunk in self.llm.astream(messages):
                text = extract_text(chunk.content)
                if text:
                    yield text
        except Exception as e:
            raise TextGenerationError(str(e)) from e

    async def generate_image(self, prompt: str, context_text: str) -> str | None:
        if not self.settings.IMAGE_MODEL_ENABLED:
            return None

        from google.genai import types

        try:
            response = await self.image_client.aio.models.generate_content(
                model=self.settings.IMAGE_MODEL,
                contents=build_infographic_prompt(prompt, context_text),
                config=types.GenerateContentConfig(
                    response_modalities=["TEXT", "IMAGE"],
                    image_config=types.ImageConfig(
                        aspect_ratio=self.settings.IMAGE_ASPECT_RATIO,
                        image_size=self.settings.IMAGE_SIZE,
                    ),
                ),
            )
        except Exception as e:
            raise ImageGenerationError(str(e)) from e

        image = extract_image(response)
        if image is None:
            logger.warning("⚠️ Image model returned no inline image")
        return image
