"""Active-time reconciliation for overlapping gaming sessions.

Two games running at once must not count twice against the daily budget, yet
each session still reports its own duration for history views. Budget usage
is therefore the length of the union of session intervals, while total
playtime is the plain sum of durations.
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime
from typing import Iterable, Optional, Sequence

from .models import GamingSession

logger = logging.getLogger(__name__)


class AccountingMode(str, enum.Enum):
    BUDGET = "budget"
    TOTAL = "total"


def closed_sessions(sessions: Iterable[GamingSession]) -> list[GamingSession]:
    return [session for session in sessions if session.is_closed]


def merge_active_time(sessions: Iterable[GamingSession]) -> int:
    """Return the seconds of wall-clock time covered by closed sessions.

    Open sessions are ignored; they are measured against the current time
    instead (see :func:`current_session_duration`).
    """
    intervals = sorted(
        _interval(session) for session in closed_sessions(sessions)
    )

    total = 0.0
    current_end: Optional[datetime] = None
    for start, end in intervals:
        if current_end is None or start >= current_end:
            total += (end - start).total_seconds()
            current_end = end
        elif end > current_end:
            total += (end - current_end).total_seconds()
            current_end = end
        # Fully contained in the covered span: nothing to add.
    return int(total)


def total_playtime(sessions: Iterable[GamingSession]) -> int:
    """Sum each closed session's own recorded duration, ignoring overlap."""
    return int(
        sum(session.duration_seconds or 0 for session in closed_sessions(sessions))
    )


def total_time(
    sessions: Sequence[GamingSession], mode: AccountingMode = AccountingMode.BUDGET
) -> int:
    if mode is AccountingMode.TOTAL:
        return total_playtime(sessions)
    return merge_active_time(sessions)


def current_session_duration(
    sessions: Iterable[GamingSession], now: datetime
) -> int:
    """Seconds since the earliest still-open session started."""
    starts = [
        session.start_time.astimezone()
        for session in sessions
        if session.end_time is None
    ]
    if not starts:
        return 0
    return max(int((now.astimezone() - min(starts)).total_seconds()), 0)


def _interval(session: GamingSession) -> tuple[datetime, datetime]:
    start = session.start_time.astimezone()
    end = (session.end_time or session.start_time).astimezone()
    if end < start:
        logger.debug(
            "Session %s ends before it starts; counting it as zero length.",
            session.id or session.game_name,
        )
        end = start
    return start, end
