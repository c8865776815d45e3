from abc import ABC, abstractmethod
from typing import List

from techtask_radar.models import CrawlCursor, RawRecord


class ListingSurface(ABC):
    """A rendered, lazily growing listing the crawl controller can drive."""

    @abstractmethod
    def count(self) -> int:
        """Number of cards rendered so far."""
        ...

    @abstractmethod
    def cursors(self, start: int, end: int) -> List[CrawlCursor]:
        """Cursors for cards ``[start, end)`` in display order."""
        ...

    @abstractmethod
    def load_more(self) -> None:
        """Trigger the next lazy-load batch (scroll to the bottom)."""
        ...

    @abstractmethod
    def settle(self, ms: int) -> None:
        ...

    @abstractmethod
    def extract_all(self) -> List[RawRecord]:
        """Every card currently rendered, as full records."""
        ...
