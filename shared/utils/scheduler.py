from apscheduler.schedulers.asyncio import AsyncIOScheduler
import structlog

logger = structlog.get_logger()


def create_scheduler() -> AsyncIOScheduler:
    """Interval jobs never overlap themselves and missed runs collapse into one."""
    return AsyncIOScheduler(
        job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 60},
    )


def start_scheduler(scheduler: AsyncIOScheduler):
    if not scheduler.running:
        scheduler.start()
        logger.info("background_scheduler_started")


def stop_scheduler(scheduler: AsyncIOScheduler):
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("background_scheduler_stopped")
