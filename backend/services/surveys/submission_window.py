"""Submission window check for surveys."""
from __future__ import annotations

from datetime import datetime

from backend.utils.datetime_helpers import ensure_utc


def is_window_open(
    start_date: datetime | None,
    end_date: datetime | None,
    is_active: bool,
    now: datetime,
) -> bool:
    """``is_active and start_date <= now <= end_date``, both bounds inclusive.

    An inactive survey is closed whatever its dates say. A survey missing
    either date is treated as closed.
    """
    if not is_active:
        return False
    if start_date is None or end_date is None:
        return False
    now = ensure_utc(now)
    return ensure_utc(start_date) <= now <= ensure_utc(end_date)
