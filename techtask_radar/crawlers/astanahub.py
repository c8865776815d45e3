from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List

from bs4 import BeautifulSoup, Tag
from loguru import logger
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, sync_playwright

from techtask_radar.config import Settings
from techtask_radar.crawlers.base import ListingSurface
from techtask_radar.crawlers.utils import absolute_link, node_text
from techtask_radar.errors import CrawlError
from techtask_radar.models import CrawlCursor, RawRecord

CARD_SELECTOR = ".techtask-card"

# Serialises only cards [start, end) so each round transfers just the new ones
CARD_SLICE_JS = "(els, [start, end]) => els.slice(start, end).map(el => el.outerHTML)"

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]
VIEWPORT = {"width": 1280, "height": 2000}


def _nth(nodes: List[Tag], index: int):
    return nodes[index] if len(nodes) > index else None


def _card_link(card: Tag, base_url: str) -> str:
    link_el = card.select_one("a[href]")
    return absolute_link(link_el.get("href") if link_el else "", base_url)


def _card_deadline(tech_items: List[Tag]) -> str:
    # 1st tech-list-item: second <p> holds the date in <b>
    first = _nth(tech_items, 0)
    if first is None:
        return ""
    p = _nth(first.find_all("p"), 1)
    return node_text(p.find("b")) if p is not None else ""


def _tech_items(card: Tag) -> List[Tag]:
    right = card.select_one(".right")
    return right.select("div.tech-list-item") if right is not None else []


def parse_card(card: Tag, base_url: str) -> RawRecord:
    left = card.select_one(".left")
    right = card.select_one(".right")
    tech_items = _tech_items(card)

    task_area = ""
    area_item = _nth(tech_items, 1)
    if area_item is not None:
        task_area = node_text(area_item.select_one("span b"))

    applications = ""
    applications_item = _nth(tech_items, 2)
    if applications_item is not None:
        applications = node_text(_nth(applications_item.find_all("p"), 1))

    return RawRecord(
        title=node_text(left.select_one("h2")) if left is not None else "",
        description=node_text(left.select_one("p")) if left is not None else "",
        client=(
            node_text(right.select_one("div.card-avatar-block div.card-author h4"))
            if right is not None
            else ""
        ),
        deadline_text=_card_deadline(tech_items),
        task_area=task_area,
        applications_count=applications,
        link=_card_link(card, base_url),
    )


def parse_cards(html: str, base_url: str) -> List[RawRecord]:
    """Turn rendered listing HTML into records, in display order."""
    soup = BeautifulSoup(html, "lxml")
    return [parse_card(card, base_url) for card in soup.select(CARD_SELECTOR)]


def parse_cursors(html: str, base_url: str) -> List[CrawlCursor]:
    soup = BeautifulSoup(html, "lxml")
    return [
        CrawlCursor(
            deadline_text=_card_deadline(_tech_items(card)),
            link=_card_link(card, base_url),
        )
        for card in soup.select(CARD_SELECTOR)
    ]


class AstanaHubListing(ListingSurface):
    """The Astana Hub tech-task listing rendered in a Playwright page."""

    def __init__(self, page: Page, settings: Settings):
        self.page = page
        self.list_url = settings.list_url
        self.base_url = settings.base_url
        self.timeout = settings.navigation_timeout_ms

    def open(self) -> None:
        logger.info(f"Opening {self.list_url}")
        try:
            self.page.goto(
                self.list_url, wait_until="domcontentloaded", timeout=self.timeout
            )
        except PlaywrightError as e:
            raise CrawlError(f"Failed to open {self.list_url}: {e}") from e

    def count(self) -> int:
        return self.page.locator(CARD_SELECTOR).count()

    def cursors(self, start: int, end: int) -> List[CrawlCursor]:
        if end <= start:
            return []
        fragments = self.page.eval_on_selector_all(
            CARD_SELECTOR, CARD_SLICE_JS, [start, end]
        )
        return parse_cursors("".join(fragments), self.base_url)

    def load_more(self) -> None:
        self.page.evaluate(
            "() => window.scrollTo({ top: document.body.scrollHeight, behavior: 'instant' })"
        )

    def settle(self, ms: int) -> None:
        self.page.wait_for_timeout(ms)

    def extract_all(self) -> List[RawRecord]:
        return parse_cards(self.page.content(), self.base_url)


@contextmanager
def open_listing(settings: Settings) -> Iterator[AstanaHubListing]:
    """Launch headless Chromium, open the listing, and always close the browser."""
    with sync_playwright() as p:
        try:
            browser = p.chromium.launch(headless=settings.headless, args=LAUNCH_ARGS)
        except PlaywrightError as e:
            raise CrawlError(f"Failed to launch Chromium: {e}") from e

        try:
            page = browser.new_page(viewport=VIEWPORT)
            listing = AstanaHubListing(page, settings)
            listing.open()
            yield listing
        finally:
            try:
                browser.close()
            except PlaywrightError as e:
                logger.warning(f"Failed to close browser cleanly: {e}")
