from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Optional

from loguru import logger

from techtask_radar.config import Settings
from techtask_radar.crawlers.astanahub import open_listing
from techtask_radar.crawlers.base import ListingSurface
from techtask_radar.crawlers.controller import Clock, CrawlController, trim, utc_now
from techtask_radar.errors import ConfigurationError
from techtask_radar.notifications.pipeline import DeliveryPipeline, select_eligible
from techtask_radar.notifications.telegram import TelegramSender
from techtask_radar.storage.seen import SeenStore, build_seen_store

ListingFactory = Callable[[Settings], AbstractContextManager]

NO_NEW_TASKS = "No new tasks."


@dataclass
class RunResult:
    ok: bool
    posted: Optional[int] = None
    failed: Optional[int] = None
    message: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


def run_once(
    settings: Settings,
    listing_factory: ListingFactory = open_listing,
    seen_store: Optional[SeenStore] = None,
    sender: Optional[TelegramSender] = None,
    clock: Optional[Clock] = None,
) -> RunResult:
    """One crawl-then-deliver cycle. Never raises; failures come back as ok=False."""
    try:
        settings.ensure_complete()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return RunResult(ok=False, error=str(e))

    clock = clock or utc_now
    try:
        seen_store = seen_store or build_seen_store(settings)
        sender = sender or TelegramSender(
            settings.telegram_bot_token, settings.telegram_channel_id
        )

        seen = seen_store.load()

        listing: ListingSurface
        with listing_factory(settings) as listing:
            outcome = CrawlController(settings, clock=clock).crawl(listing)
            records = trim(listing.extract_all(), outcome)
        logger.info(
            f"Crawl stopped by {outcome.reason.value} after {outcome.rounds} round(s); "
            f"{len(records)} cards kept"
        )

        eligible = select_eligible(records, seen, clock())
        if not eligible:
            logger.info(NO_NEW_TASKS)
            return RunResult(ok=True, message=NO_NEW_TASKS)

        logger.info(f"Found {len(eligible)} new tasks")
        pipeline = DeliveryPipeline(sender, seen_store, settings.delivery_pacing_ms)
        report = pipeline.run(eligible, seen)
        return RunResult(ok=True, posted=report.delivered, failed=report.failed)
    except Exception as e:
        logger.exception(f"Run failed: {e}")
        return RunResult(ok=False, error=str(e))


def run_scheduled_check(settings: Settings) -> None:
    """Scheduler entry point: one crawl-then-deliver cycle."""
    result = run_once(settings)
    if result.ok:
        logger.info(f"Scheduled run completed: {result.to_dict()}")
    else:
        logger.error(f"Scheduled run failed: {result.error}")
