"""Background task scheduler for forward sync and customer generation."""

import logging
from datetime import UTC, datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from anonsync.config import Settings
from anonsync.generator import generate_batch
from anonsync.services.collection import CustomerCollection
from anonsync.services.pursuer import Pursuer

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None


async def pursue_job(pursuer: Pursuer) -> None:
    """Background job running one forward sync tick."""
    try:
        await pursuer.tick()
    except Exception as e:
        logger.error(f"Pursuer tick failed: {e}", exc_info=True)


async def generate_customers_job(source: CustomerCollection) -> None:
    """Background job inserting a batch of fake customers into the source."""
    try:
        count = await generate_batch(source)
        logger.info(f"Generated {count} customers")
    except Exception as e:
        logger.error(f"Customer generation failed: {e}", exc_info=True)


def _interval_job_options(interval_ms: int) -> dict:
    # Ticks never overlap: a tick still running when the next is due is skipped.
    return {
        "trigger": IntervalTrigger(seconds=interval_ms / 1000),
        "next_run_time": datetime.now(UTC),
        "max_instances": 1,
        "coalesce": True,
        "replace_existing": True,
    }


def setup_scheduler(
    settings: Settings,
    pursuer: Pursuer | None = None,
    generator_source: CustomerCollection | None = None,
) -> AsyncIOScheduler:
    """Set up and start the background task scheduler."""
    global scheduler

    scheduler = AsyncIOScheduler()

    if pursuer is not None:
        scheduler.add_job(
            pursue_job,
            args=[pursuer],
            id="pursue",
            name="Forward sync new customers into the target",
            **_interval_job_options(settings.pursuer_interval_ms),
        )
        logger.info("Start Pursuer")

    if generator_source is not None:
        scheduler.add_job(
            generate_customers_job,
            args=[generator_source],
            id="generate_customers",
            name="Insert fake customers into the source",
            **_interval_job_options(settings.generator_interval_ms),
        )

    scheduler.start()
    logger.info("Scheduler started")

    return scheduler


def shutdown_scheduler() -> None:
    """Shut down the scheduler gracefully."""
    global scheduler

    if scheduler:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")
        scheduler = None
