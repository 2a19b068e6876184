"""
Địa AI Study Assistant - FastAPI Application Entry Point.

Feature-based modular architecture:
  knowledge/  uploads, simulated ingestion, retrieval
  chat/       conversation state and streamed multimodal answers
  vault/      archive of finished answers
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.background.scheduler import create_scheduler, register_ingestion_job
from app.config import get_settings
from app.core.session import StudySession

# ── Feature Routers ──────────────────────────────────────
from app.features.chat.router import router as chat_router
from app.features.knowledge.router import router as knowledge_router
from app.features.vault.router import router as vault_router

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(session: StudySession | None = None, enable_scheduler: bool = True) -> FastAPI:
    """Application factory."""
    settings = get_settings()
    configure_logging(settings.DEBUG)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifecycle: startup & shutdown."""
        logger.info(f"🚀 {settings.APP_NAME} v{settings.APP_VERSION} starting...")
        logger.info(f"🤖 Text model: {settings.LLM_MODEL} | Image model: {settings.IMAGE_MODEL}")
        scheduler = None
        if enable_scheduler:
            scheduler = create_scheduler()
            register_ingestion_job(scheduler, app.state.session.pipeline, settings.INGEST_TICK_SECONDS)
            scheduler.start()
        yield
        if scheduler is not None:
            scheduler.shutdown(wait=False)
        logger.info("👋 Shutting down...")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Địa AI - Học liệu số thông minh",
        lifespan=lifespan,
    )
    app.state.session = session or StudySession(settings)

    # ── CORS ─────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Register Feature Routers ─────────────────────────
    app.include_router(knowledge_router, prefix="/api/knowledge", tags=["Knowledge"])
    app.include_router(chat_router, prefix="/api/chat", tags=["Chat"])
    app.include_router(vault_router, prefix="/api/vault", tags=["Vault"])

    # ── Health Check ─────────────────────────────────────
    @app.get("/health", tags=["System"])
    async def health_check():
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    return app


app = create_app()
