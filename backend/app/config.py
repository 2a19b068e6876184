"""
Application configuration using Pydantic Settings.
All config is loaded from environment variables / .env file.
"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    # ── App ──────────────────────────────────────────────
    APP_NAME: str = "dia-ai-study-assistant"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"  # comma-separated

    # ── LLM (text stream) ────────────────────────────────
    LLM_API_KEY: str = ""
    LLM_MODEL: str = "gemini-3-flash-preview"
    LLM_TEMPERATURE: float = 1.0  # Gemini 3 docs: keep at 1.0, lower causes looping

    # ── Image Model (infographic) ────────────────────────
    IMAGE_MODEL: str = "gemini-3-pro-image-preview"  # Nano Banana Pro
    IMAGE_MODEL_ENABLED: bool = True
    IMAGE_ASPECT_RATIO: str = "16:9"
    IMAGE_SIZE: str = "1K"

    # ── Ingestion (simulated) ────────────────────────────
    INGEST_TICK_SECONDS: float = 0.3
    INGEST_PROGRESS_STEP: int = 10  # percent per tick
    INGEST_PLACEHOLDER_CONTENT: str = "Nội dung tài liệu."

    # ── Vault ────────────────────────────────────────────
    VAULT_TITLE_MAX_LENGTH: int = 100
    VAULT_TRACKING_ENABLED: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance (singleton)."""
    return Settings()
