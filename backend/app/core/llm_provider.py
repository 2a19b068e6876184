"""
Gemini client factories.

  LLM_MODEL=gemini-3-flash-preview        -> streamed text answers (LangChain)
  IMAGE_MODEL=gemini-3-pro-image-preview  -> infographic generation (google-genai)
  LLM_API_KEY=your-key
"""

from langchain_core.language_models import BaseChatModel

from app.config import get_settings


def create_llm() -> BaseChatModel:
    """Create the chat model used for streamed answers.

    Returns:
        BaseChatModel: A LangChain-compatible chat model.
    """
    from langchain_google_genai import ChatGoogleGenerativeAI

    settings = get_settings()
    return ChatGoogleGenerativeAI(
        model=settings.LLM_MODEL,
        google_api_key=settings.LLM_API_KEY,
        temperature=settings.LLM_TEMPERATURE,
    )


def create_image_client():
    """Create a google-genai client for the image model."""
    from google import genai

    settings = get_settings()
    return genai.Client(api_key=settings.LLM_API_KEY)
