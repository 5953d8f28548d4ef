from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from shipsync.services.errors import JobAlreadyRunning
from shipsync.services.order_change_job import OrderChangeJob

logger = logging.getLogger("shipsync.job")

JOB_ID = "order-change-detector"
FIRST_RUN_DELAY_SECONDS = 5


async def _run_job(job: OrderChangeJob) -> None:
    try:
        await job.run()
    except JobAlreadyRunning:
        logger.info("order change job already running, skipping this tick")
    except Exception:
        logger.exception("scheduled order change job failed")


def init_scheduler(job: OrderChangeJob) -> Optional[AsyncIOScheduler]:
    """Start the interval job when enabled; returns None otherwise."""
    if not job.config.enabled:
        logger.info("order change job disabled (ORDER_CHANGE_DETECTOR_ENABLED)")
        return None
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        _run_job,
        "interval",
        minutes=job.config.interval_minutes,
        args=[job],
        id=JOB_ID,
        max_instances=1,
        coalesce=True,
        next_run_time=datetime.now(timezone.utc) + timedelta(seconds=FIRST_RUN_DELAY_SECONDS),
    )
    scheduler.start()
    logger.info(
        "order change job scheduled every %d minutes", job.config.interval_minutes
    )
    return scheduler


def shutdown_scheduler(scheduler: Optional[AsyncIOScheduler]) -> None:
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
