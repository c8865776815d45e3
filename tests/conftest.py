from contextlib import contextmanager
from datetime import datetime, timezone
from typing import List, Optional

import pytest

from techtask_radar.config import Settings
from techtask_radar.crawlers.base import ListingSurface
from techtask_radar.models import CrawlCursor, RawRecord

# 15:00 in Astana (UTC+5): "today" there is 21.08.25
FIXED_NOW = datetime(2025, 8, 21, 10, 0, tzinfo=timezone.utc)


def task(n: int, deadline: str = "30.08.25", link: Optional[str] = None) -> RawRecord:
    return RawRecord(
        title=f"Task {n}",
        description=f"Description {n}",
        client="ТОО Ромашка",
        deadline_text=deadline,
        task_area="IT",
        applications_count="3",
        link=f"https://astanahub.com/ru/tech_task/{n}/" if link is None else link,
    )


class FakeListing(ListingSurface):
    """Renders ``batches[0]`` up front and one more batch per ``load_more``."""

    def __init__(self, batches: List[List[RawRecord]], endless: bool = False):
        self.batches = list(batches)
        self.endless = endless
        self.rendered: List[RawRecord] = list(self.batches.pop(0)) if self.batches else []
        self.load_more_calls = 0
        self.settle_calls: List[int] = []
        self.cursor_requests = []

    def count(self) -> int:
        return len(self.rendered)

    def cursors(self, start: int, end: int) -> List[CrawlCursor]:
        self.cursor_requests.append((start, end))
        return [record.cursor() for record in self.rendered[start:end]]

    def load_more(self) -> None:
        self.load_more_calls += 1
        if self.batches:
            self.rendered.extend(self.batches.pop(0))
        elif self.endless:
            self.rendered.append(task(1000 + len(self.rendered)))

    def settle(self, ms: int) -> None:
        self.settle_calls.append(ms)

    def extract_all(self) -> List[RawRecord]:
        return list(self.rendered)


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides) -> Settings:
        values = dict(
            telegram_bot_token="123:ABC",
            telegram_channel_id="@techtasks",
            storage_backend="database",
            database_url=f"sqlite:///{tmp_path / 'techtasks.db'}",
            delivery_pacing_ms=0,
            wait_between_scroll_ms=1200,
        )
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def listing_factory():
    """Wrap a FakeListing into the context-manager shape ``run_once`` expects."""

    def _make(listing: FakeListing):
        state = {"opened": False, "closed": False}

        @contextmanager
        def factory(settings):
            state["opened"] = True
            try:
                yield listing
            finally:
                state["closed"] = True

        factory.state = state
        return factory

    return _make
