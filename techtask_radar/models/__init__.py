from techtask_radar.models.blob import Blob
from techtask_radar.models.task import CrawlCursor, RawRecord

__all__ = [
    "Blob",
    "CrawlCursor",
    "RawRecord",
]
