from __future__ import annotations

from datetime import datetime
from typing import Optional

from chat.core.state import utc_now

_DAY_S = 24 * 60 * 60


def format_relative_date(when: datetime, now: Optional[datetime] = None) -> str:
    """Sidebar label for a session: "Today", "Yesterday", "N days ago", else the date.

    Days are counted as whole 24h periods between the two instants, not calendar days.
    """
    now = now or utc_now()
    days = int(abs((now - when).total_seconds()) // _DAY_S)
    if days == 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    return when.date().isoformat()


def format_time(when: datetime) -> str:
    return when.strftime("%H:%M")
