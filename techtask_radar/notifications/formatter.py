from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Tuple

from techtask_radar.models import RawRecord

LINK_LABEL = "Ссылка"
TELEGRAM_MAX_LENGTH = 4096
ELLIPSIS = "…"


def escape_html(text: str) -> str:
    """Escape the characters Telegram's HTML parse mode treats as markup."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _fields(record: RawRecord) -> List[Tuple[str, Optional[str]]]:
    return [
        ("Заголовок", record.title),
        ("Описание", record.description),
        ("Клиент", record.client),
        ("Дедлайн", record.deadline_text),
        ("Область задачи", record.task_area),
        ("Подано заявок", record.applications_count),
    ]


def format_task(record: RawRecord) -> str:
    """Render the present fields of a task as ``<b>Label:</b> value`` lines.

    Empty or whitespace-only fields are left out entirely.
    """
    lines = []
    for label, value in _fields(record):
        if value and str(value).strip():
            lines.append(f"<b>{escape_html(label)}:</b> {escape_html(str(value).strip())}")
    return "\n".join(lines)


def _compose(record: RawRecord) -> str:
    body = format_task(record)
    link_line = f"{LINK_LABEL}: {escape_html(record.link)}"
    if not body:
        return link_line
    return f"{body}\n\n{link_line}"


def format_message(record: RawRecord, limit: int = TELEGRAM_MAX_LENGTH) -> str:
    """Full message for a task, with the description shortened to fit ``limit``."""
    message = _compose(record)
    if len(message) <= limit:
        return message

    description = record.description.strip()
    keep = max(len(description) - (len(message) - limit) - len(ELLIPSIS), 0)
    while True:
        shortened = replace(record, description=description[:keep].rstrip() + ELLIPSIS)
        message = _compose(shortened)
        if len(message) <= limit or keep == 0:
            return message
        keep = max(keep - (len(message) - limit), 0)
