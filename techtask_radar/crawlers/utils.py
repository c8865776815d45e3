import re
from typing import Optional

from bs4 import Tag


def clean_text(text: Optional[str]) -> str:
    """Collapse runs of whitespace and trim."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()


def node_text(node: Optional[Tag]) -> str:
    return clean_text(node.get_text()) if node is not None else ""


def absolute_link(href: Optional[str], base_url: str) -> str:
    if not href:
        return ""
    href = href.strip()
    if href.startswith("/"):
        return base_url.rstrip("/") + href
    return href
