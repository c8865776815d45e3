"""Incremental crawl of the lazily loaded tech-task listing.

The listing is scrolled one batch at a time. Under newest-first ordering the
first card whose deadline is expired (or unreadable) is a fence: everything
after it is older, so nothing past it can still be open and the crawl stops
right there. Under oldest-first ordering no such fence exists and the crawl
only ends when the page stops growing or the round cap is hit.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

from loguru import logger

from techtask_radar.config import Settings
from techtask_radar.crawlers.base import ListingSurface
from techtask_radar.crawlers.deadline import is_stale
from techtask_radar.models import RawRecord

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StopReason(enum.Enum):
    expiry = "expiry"
    idle = "idle"
    max_rounds = "max_rounds"


@dataclass
class CrawlOutcome:
    stop_at_count: Optional[int]
    reason: StopReason
    rounds: int
    examined: int


class CrawlController:
    def __init__(self, settings: Settings, clock: Optional[Clock] = None):
        self.max_rounds = settings.max_scroll_rounds
        self.settle_ms = settings.wait_between_scroll_ms
        self.idle_rounds = settings.idle_after_no_growth_rounds
        self.newest_first = settings.newest_first
        self.clock = clock or utc_now

    def crawl(self, surface: ListingSurface) -> CrawlOutcome:
        now = self.clock()
        last_count = 0
        no_growth_rounds = 0
        examined = 0

        for round_no in range(1, self.max_rounds + 1):
            count = surface.count()
            if count <= last_count:
                no_growth_rounds += 1
            else:
                no_growth_rounds = 0
            last_count = count

            start = examined
            fresh = surface.cursors(start, count)
            examined = max(examined, count)

            # Oldest-first listings have no fence; only growth limits end the crawl
            if self.newest_first:
                for index, cursor in enumerate(fresh, start=start):
                    if is_stale(cursor.deadline_text, now):
                        logger.info(
                            f"Round {round_no}: first expired/invalid deadline "
                            f"{cursor.deadline_text!r} at index {index} ({cursor.link})"
                        )
                        return CrawlOutcome(index, StopReason.expiry, round_no, examined)

            logger.debug(
                f"Round {round_no}: {count} cards, {len(fresh)} new, "
                f"no growth for {no_growth_rounds} round(s)"
            )

            if no_growth_rounds >= self.idle_rounds:
                logger.info(f"Listing stopped growing at {count} cards")
                return CrawlOutcome(None, StopReason.idle, round_no, examined)

            surface.load_more()
            surface.settle(self.settle_ms)

        logger.warning(f"Reached max scroll rounds ({self.max_rounds})")
        return CrawlOutcome(None, StopReason.max_rounds, self.max_rounds, examined)


def trim(records: List[RawRecord], outcome: CrawlOutcome) -> List[RawRecord]:
    """Keep only the cards before the fence, or all of them if none was found."""
    if outcome.stop_at_count is None:
        return list(records)
    return list(records[: outcome.stop_at_count])
