"""
Repayment deadline: a fixed three-day window starting at disbursement.

Pure functions of two instants; callers re-evaluate against the wall clock on
every render or tick.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from schemas.loan_request import TimeRemaining

REPAYMENT_WINDOW = timedelta(days=3)

_DAY = 24 * 60 * 60
_HOUR = 60 * 60
_MINUTE = 60


def as_utc(value: datetime) -> datetime:
    """Naive datetimes (as SQLite returns them) are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def due_at(disbursed_at: datetime) -> datetime:
    return as_utc(disbursed_at) + REPAYMENT_WINDOW


def remaining(disbursed_at: Optional[datetime], now: datetime) -> Optional[TimeRemaining]:
    """
    Whole days, then hours, then minutes left until the repayment is due.
    None when the record was never disbursed; zeros once the window has elapsed.
    """
    if disbursed_at is None:
        return None
    left = due_at(disbursed_at) - as_utc(now)
    if left <= timedelta(0):
        return TimeRemaining(days=0, hours=0, minutes=0)
    seconds = left // timedelta(seconds=1)
    days, seconds = divmod(seconds, _DAY)
    hours, seconds = divmod(seconds, _HOUR)
    return TimeRemaining(days=days, hours=hours, minutes=seconds // _MINUTE)


def is_overdue(disbursed_at: datetime, now: datetime) -> bool:
    return as_utc(now) >= due_at(disbursed_at)
