from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CrawlCursor:
    """The part of a listing card needed to decide where the crawl stops."""

    deadline_text: str
    link: str


@dataclass(frozen=True)
class RawRecord:
    """One tech-task card as rendered at crawl time. ``link`` is its identity."""

    title: str = ""
    description: str = ""
    client: str = ""
    deadline_text: str = ""
    task_area: str = ""
    applications_count: str = ""
    link: str = ""

    def cursor(self) -> CrawlCursor:
        return CrawlCursor(deadline_text=self.deadline_text, link=self.link)
