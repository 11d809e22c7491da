"""
Slot ids: YYYYMMDDHHmm integers for 5-minute radar slices, in a fixed UTC offset (Singapore, +0800).

Integer order is chronological. minutes_between only looks at HHmm, so it is
only meaningful for two slots on the same local day (see its docstring).
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Callable

SLOT_MINUTES = 5
DEFAULT_UTC_OFFSET_HOURS = 8
SLOT_FORMAT = "%Y%m%d%H%M"

Clock = Callable[[], datetime]

_HHMM_RE = re.compile(r"(\d{2})(\d{2})$")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _local(now: datetime, offset_hours: int) -> datetime:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone(timedelta(hours=offset_hours)))


def datetime_to_slot(dt: datetime) -> int:
    """Compose the slot id from a local datetime, flooring minutes to a multiple of 5."""
    minute = dt.minute - dt.minute % SLOT_MINUTES
    return int(dt.replace(minute=minute).strftime(SLOT_FORMAT))


def current_slot(
    offset_minutes: int = 0,
    *,
    now: datetime | None = None,
    utc_offset_hours: int = DEFAULT_UTC_OFFSET_HOURS,
) -> int:
    """
    Slot id for "now" (or now shifted by offset_minutes) in the fixed offset.
    E.g. 14:07 -> ...1405, 14:19 -> ...1415. now defaults to the wall clock (UTC).
    """
    local = _local(now or utc_now(), utc_offset_hours)
    if offset_minutes:
        local = local + timedelta(minutes=offset_minutes)
    return datetime_to_slot(local)


def slot_to_datetime(slot: int) -> datetime:
    """Naive local datetime for a slot id. Raises ValueError if slot is not YYYYMMDDHHmm."""
    return datetime.strptime(str(slot), SLOT_FORMAT)


def shift_slot(slot: int, minutes: int) -> int:
    """Slot id `minutes` later (negative = earlier), with real calendar arithmetic."""
    return datetime_to_slot(slot_to_datetime(slot) + timedelta(minutes=minutes))


def slot_minute(slot: int) -> int:
    return int(slot) % 100


def is_top_of_hour(slot: int) -> bool:
    return slot_minute(slot) == 0


def minutes_between(slot_a: int | None, slot_b: int | None) -> int:
    """
    slot_a - slot_b in minutes using only the trailing HHmm of each id; the date is ignored.

    Same-day pairs are exact. Across midnight the result is negative (23:55 -> 00:05 gives -1430)
    and pairs more than a day apart wrap. Missing or unparseable ids give 0.
    """
    if slot_a is None or slot_b is None:
        return 0
    m_a = _HHMM_RE.search(str(slot_a))
    m_b = _HHMM_RE.search(str(slot_b))
    if not m_a or not m_b:
        return 0
    total_a = int(m_a.group(1)) * 60 + int(m_a.group(2))
    total_b = int(m_b.group(1)) * 60 + int(m_b.group(2))
    return total_a - total_b
