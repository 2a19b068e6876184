"""
Background scheduler for the ingestion progress tick.

Uses APScheduler on the app's event loop so that ticks run on the same
thread as request handling.
"""

import logging
from datetime import timezone, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.background.document_tasks import IngestionPipeline

logger = logging.getLogger(__name__)

# Vietnam timezone (UTC+7)
VN_TZ = timezone(timedelta(hours=7))

INGESTION_JOB_ID = "ingestion_tick_task"


def create_scheduler() -> AsyncIOScheduler:
    return AsyncIOScheduler(timezone=VN_TZ)


async def run_ingestion_tick(pipeline: IngestionPipeline):
    """Scheduled job: advance all processing uploads by one step."""
    if pipeline.tick():
        logger.debug(f"Ingestion tick, global progress={pipeline.global_progress()}")


def register_ingestion_job(scheduler: AsyncIOScheduler, pipeline: IngestionPipeline, seconds: float):
    """Add (or replace) the interval job that drives ingestion."""
    scheduler.add_job(
        run_ingestion_tick,
        "interval",
        seconds=seconds,
        args=[pipeline],
        id=INGESTION_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    logger.info(f"⏰ Ingestion tick scheduled every {seconds}s")
