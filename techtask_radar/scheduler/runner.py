from typing import Union

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from loguru import logger

from techtask_radar.config import Settings
from techtask_radar.scheduler.jobs import run_scheduled_check


def create_scheduler(
    settings: Settings, blocking: bool = False
) -> Union[BackgroundScheduler, BlockingScheduler]:
    scheduler = BlockingScheduler() if blocking else BackgroundScheduler()

    # One run at a time: overlapping runs would race on the seen set
    scheduler.add_job(
        run_scheduled_check,
        "interval",
        minutes=settings.schedule_interval_minutes,
        args=[settings],
        id="techtask_check",
        name="Tech Task Check",
        max_instances=1,
        coalesce=True,
    )

    logger.info(
        f"Scheduler configured: tech task check every "
        f"{settings.schedule_interval_minutes} minutes"
    )
    return scheduler


def start_scheduler(settings: Settings) -> BackgroundScheduler:
    scheduler = create_scheduler(settings)
    scheduler.start()
    logger.info("Scheduler started")
    return scheduler
