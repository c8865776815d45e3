from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, List, Set

from loguru import logger

from techtask_radar.crawlers.deadline import is_expired, parse_deadline
from techtask_radar.errors import PersistenceError
from techtask_radar.models import RawRecord
from techtask_radar.notifications.formatter import format_message
from techtask_radar.notifications.telegram import TelegramSender
from techtask_radar.storage.seen import SeenStore


def select_eligible(
    records: Iterable[RawRecord], seen: Set[str], now: datetime
) -> List[RawRecord]:
    """Records with a link, not delivered before, and a deadline still open.

    Order is preserved; a link repeated within the batch is kept once.
    """
    eligible = []
    picked: Set[str] = set()
    for record in records:
        if not record.link or record.link in seen or record.link in picked:
            continue
        if is_expired(parse_deadline(record.deadline_text), now):
            continue
        picked.add(record.link)
        eligible.append(record)
    return eligible


@dataclass
class DeliveryReport:
    delivered: int = 0
    failed: int = 0
    seen: Set[str] = field(default_factory=set)


class DeliveryPipeline:
    """Posts tasks one by one and records each link only once it was sent."""

    def __init__(
        self,
        sender: TelegramSender,
        seen_store: SeenStore,
        pacing_ms: int = 800,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.sender = sender
        self.seen_store = seen_store
        self.pacing_ms = pacing_ms
        self.sleep = sleep

    def _deliver(self, record: RawRecord) -> bool:
        try:
            return self.sender.send(format_message(record))
        except Exception as e:
            logger.exception(f"Unexpected error posting {record.link}: {e}")
            return False

    def run(self, records: List[RawRecord], seen: Set[str]) -> DeliveryReport:
        report = DeliveryReport(seen=set(seen))

        try:
            for i, record in enumerate(records):
                if i > 0:
                    self.sleep(self.pacing_ms / 1000)

                if self._deliver(record):
                    report.delivered += 1
                    report.seen.add(record.link)
                else:
                    report.failed += 1
                    logger.error(f"Failed to post {record.link}, will retry next run")
        except BaseException as e:
            # Persist whatever was delivered before the interruption
            logger.error(
                f"Delivery interrupted after {report.delivered} posted task(s): {e!r}"
            )
            try:
                self.seen_store.save(report.seen)
            except PersistenceError as save_error:
                raise save_error from e
            raise

        self.seen_store.save(report.seen)

        logger.info(
            f"Delivered {report.delivered}/{len(records)} tasks ({report.failed} failed)"
        )
        return report
