"""Deadline parsing and expiry checks for tech-task cards.

Cards show the deadline as ``DD.MM.YY``, sometimes prefixed with a "due"
marker ("до 21.08.25"). Parsing is zone-naive: a valid deadline is midnight
UTC of its calendar date. Expiry is judged against the start of the current
day in Astana's fixed UTC+05:00 civil time, never the host's local zone.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

CIVIL_OFFSET = timedelta(hours=5)

_DUE_MARKER = re.compile(r"^\s*(?:due|до)\s*", re.IGNORECASE)
_SHORT_DATE = re.compile(r"([0-9]{2})\.([0-9]{2})\.([0-9]{2})")


@dataclass(frozen=True)
class ValidDeadline:
    instant: datetime


@dataclass(frozen=True)
class InvalidDeadline:
    text: str


Deadline = Union[ValidDeadline, InvalidDeadline]


def _expand_year(yy: int) -> int:
    return 2000 + yy if yy < 70 else 1900 + yy


def parse_deadline(text: Optional[str]) -> Deadline:
    """Parse a card deadline such as ``"до 21.08.25"``.

    Anything that is not exactly ``DD.MM.YY`` after the marker is stripped,
    or whose day/month is out of range, yields ``InvalidDeadline``.
    """
    raw = text or ""
    stripped = _DUE_MARKER.sub("", raw.strip(), count=1).strip()

    match = _SHORT_DATE.fullmatch(stripped)
    if not match:
        return InvalidDeadline(raw)

    day, month, yy = (int(group) for group in match.groups())
    if not 1 <= day <= 31 or not 1 <= month <= 12:
        return InvalidDeadline(raw)

    try:
        instant = datetime(_expand_year(yy), month, day, tzinfo=timezone.utc)
    except ValueError:
        # 31.02 and friends: in range, but not a calendar date
        return InvalidDeadline(raw)
    return ValidDeadline(instant)


def start_of_civil_day(now: datetime) -> datetime:
    """UTC instant at which the current UTC+05:00 calendar day began."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    shifted = now.astimezone(timezone.utc) + CIVIL_OFFSET
    midnight = shifted.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight - CIVIL_OFFSET


def is_expired(deadline: Deadline, now: datetime) -> bool:
    """True when the deadline lies before today; today itself is still open.

    An invalid deadline counts as expired.
    """
    if isinstance(deadline, InvalidDeadline):
        return True
    return deadline.instant < start_of_civil_day(now)


def is_stale(deadline_text: str, now: datetime) -> bool:
    return is_expired(parse_deadline(deadline_text), now)
