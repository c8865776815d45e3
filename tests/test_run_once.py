from contextlib import contextmanager
from unittest.mock import MagicMock

import pytest
from conftest import FIXED_NOW, FakeListing, task

from techtask_radar.db.database import get_engine, init_db
from techtask_radar.errors import CrawlError, PersistenceError
from techtask_radar.scheduler.jobs import RunResult, run_once
from techtask_radar.storage.blobs import DatabaseBlobStore
from techtask_radar.storage.seen import SeenStore


@pytest.fixture
def seen_store(tmp_path):
    engine = get_engine(f"sqlite:///{tmp_path / 'seen.db'}")
    init_db(engine)
    yield SeenStore(DatabaseBlobStore(engine, "techtasks-seen"), "seen.json")
    engine.dispose()


@pytest.fixture
def sender():
    sender = MagicMock()
    sender.send.return_value = True
    return sender


def _listing():
    return FakeListing(
        [
            [task(1), task(2), task(3)],
            [task(4), task(5, "19.08.25"), task(6)],
        ]
    )


class TestRunOnce:
    def test_posts_new_tasks_and_records_them(
        self, make_settings, listing_factory, seen_store, sender
    ):
        factory = listing_factory(_listing())

        result = run_once(
            make_settings(),
            listing_factory=factory,
            seen_store=seen_store,
            sender=sender,
            clock=lambda: FIXED_NOW,
        )

        assert result == RunResult(ok=True, posted=4, failed=0)
        assert result.to_dict() == {"ok": True, "posted": 4, "failed": 0}
        assert sender.send.call_count == 4
        assert seen_store.load() == {task(n).link for n in (1, 2, 3, 4)}
        assert factory.state["closed"] is True

    def test_second_run_posts_nothing(
        self, make_settings, listing_factory, seen_store, sender
    ):
        for _ in range(2):
            result = run_once(
                make_settings(),
                listing_factory=listing_factory(_listing()),
                seen_store=seen_store,
                sender=sender,
                clock=lambda: FIXED_NOW,
            )

        assert result.to_dict() == {"ok": True, "message": "No new tasks."}
        assert sender.send.call_count == 4

    def test_failed_send_is_retried_next_run(
        self, make_settings, listing_factory, seen_store, sender
    ):
        sender.send.side_effect = [True, False, True, True]
        run_once(
            make_settings(),
            listing_factory=listing_factory(_listing()),
            seen_store=seen_store,
            sender=sender,
            clock=lambda: FIXED_NOW,
        )
        assert task(2).link not in seen_store.load()

        sender.send.side_effect = None
        sender.send.return_value = True
        result = run_once(
            make_settings(),
            listing_factory=listing_factory(_listing()),
            seen_store=seen_store,
            sender=sender,
            clock=lambda: FIXED_NOW,
        )

        assert result.posted == 1
        assert task(2).link in seen_store.load()

    def test_missing_config_aborts_before_crawl(
        self, make_settings, listing_factory, seen_store, sender
    ):
        factory = listing_factory(_listing())

        result = run_once(
            make_settings(telegram_bot_token=""),
            listing_factory=factory,
            seen_store=seen_store,
            sender=sender,
        )

        assert result.ok is False
        assert "TELEGRAM_BOT_TOKEN" in result.error
        assert factory.state["opened"] is False
        sender.send.assert_not_called()

    def test_crawl_error_reports_failure(self, make_settings, seen_store, sender):
        @contextmanager
        def broken(settings):
            raise CrawlError("Failed to launch Chromium")
            yield

        result = run_once(
            make_settings(), listing_factory=broken, seen_store=seen_store, sender=sender
        )

        assert result.to_dict() == {"ok": False, "error": "Failed to launch Chromium"}
        sender.send.assert_not_called()

    def test_extraction_error_still_closes_listing(
        self, make_settings, listing_factory, seen_store, sender
    ):
        listing = _listing()
        listing.extract_all = MagicMock(side_effect=RuntimeError("DOM detached"))
        factory = listing_factory(listing)

        result = run_once(
            make_settings(),
            listing_factory=factory,
            seen_store=seen_store,
            sender=sender,
            clock=lambda: FIXED_NOW,
        )

        assert result.ok is False
        assert "DOM detached" in result.error
        assert factory.state["closed"] is True

    def test_save_failure_fails_the_run(
        self, make_settings, listing_factory, sender
    ):
        store = MagicMock()
        store.load.return_value = set()
        store.save.side_effect = PersistenceError("Netlify Blobs write failed: 503")

        result = run_once(
            make_settings(),
            listing_factory=listing_factory(_listing()),
            seen_store=store,
            sender=sender,
            clock=lambda: FIXED_NOW,
        )

        assert result.ok is False
        assert "503" in result.error
        assert sender.send.call_count == 4

    def test_first_card_expired(self, make_settings, listing_factory, seen_store, sender):
        listing = FakeListing([[task(1, "01.01.25"), task(2)]])

        result = run_once(
            make_settings(),
            listing_factory=listing_factory(listing),
            seen_store=seen_store,
            sender=sender,
            clock=lambda: FIXED_NOW,
        )

        assert result.to_dict() == {"ok": True, "message": "No new tasks."}
        sender.send.assert_not_called()
