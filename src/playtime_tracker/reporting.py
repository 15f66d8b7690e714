"""History filters, statistics and console summaries."""

from __future__ import annotations

import enum
import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Generic, Iterable, Optional, Sequence, TypeVar

from .accounting import AccountingMode, total_time
from .budget import classify
from .formatting import format_duration, format_minutes
from .models import GamingSession
from .normalization import display_game_name, normalize_process_name
from .service import GameService

T = TypeVar("T")


class Period(str, enum.Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"

    @property
    def label(self) -> str:
        return _PERIOD_LABELS[self]


_PERIOD_LABELS = {
    Period.TODAY: "today",
    Period.WEEK: "this week",
    Period.MONTH: "this month",
    Period.ALL: "all time",
}


class SessionFilter(str, enum.Enum):
    ALL = "all"
    SOCIAL = "social"
    SOLO = "solo"
    CONCURRENT = "concurrent"


class AverageType(str, enum.Enum):
    SESSION = "session"
    DAY = "day"


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    page: int
    total_pages: int
    total_items: int


@dataclass(frozen=True, slots=True)
class HistoryStats:
    period: Period
    mode: AccountingMode
    average_type: AverageType
    total_seconds: int
    total_sessions: int
    social_sessions: int
    average_seconds: int

    @property
    def average_label(self) -> str:
        per = "per session" if self.average_type is AverageType.SESSION else "per day"
        return f"{per} ({self.period.label})"

    def to_dict(self) -> dict[str, object]:
        return {
            "period": self.period.value,
            "period_label": self.period.label,
            "mode": self.mode.value,
            "total_seconds": self.total_seconds,
            "total_display": format_duration(self.total_seconds),
            "total_sessions": self.total_sessions,
            "social_sessions": self.social_sessions,
            "average_type": self.average_type.value,
            "average_seconds": self.average_seconds,
            "average_display": format_duration(self.average_seconds),
            "average_label": self.average_label,
        }


def period_start(period: Period, now: datetime) -> Optional[datetime]:
    """Start of the calendar period containing ``now``; weeks begin on Sunday."""
    if period is Period.ALL:
        return None
    today = now.astimezone().replace(hour=0, minute=0, second=0, microsecond=0)
    if period is Period.TODAY:
        return today
    if period is Period.WEEK:
        days_since_sunday = (today.weekday() + 1) % 7
        return today - timedelta(days=days_since_sunday)
    return today.replace(day=1)


def in_period(session: GamingSession, period: Period, now: datetime) -> bool:
    start = period_start(period, now)
    if start is None:
        return True
    started = session.start_time.astimezone()
    return start <= started <= now.astimezone()


def recorded_sessions(sessions: Iterable[GamingSession]) -> list[GamingSession]:
    """Closed sessions with a non-zero recorded duration."""
    return [s for s in sessions if s.is_closed and s.duration_seconds]


def filter_sessions(
    sessions: Iterable[GamingSession],
    *,
    period: Period = Period.WEEK,
    session_filter: SessionFilter = SessionFilter.ALL,
    search: str = "",
    now: datetime,
) -> list[GamingSession]:
    needle = search.strip().lower()
    matched: list[GamingSession] = []
    for session in recorded_sessions(sessions):
        if not in_period(session, period, now):
            continue
        if not _matches_filter(session, session_filter):
            continue
        name = display_game_name(session.game_name, session.process_name)
        if needle and needle not in name.lower():
            continue
        matched.append(session)
    return matched


def _matches_filter(session: GamingSession, session_filter: SessionFilter) -> bool:
    if session_filter is SessionFilter.SOCIAL:
        return session.is_social_session
    if session_filter is SessionFilter.SOLO:
        return not session.is_social_session
    if session_filter is SessionFilter.CONCURRENT:
        return session.is_concurrent
    return True


def group_by_day(sessions: Iterable[GamingSession]) -> dict[date, list[GamingSession]]:
    """Group sessions by local start date, newest day first."""
    groups: defaultdict[date, list[GamingSession]] = defaultdict(list)
    for session in sessions:
        groups[session.start_time.astimezone().date()].append(session)
    return dict(sorted(groups.items(), key=lambda item: item[0], reverse=True))


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    total_pages = math.ceil(len(items) / page_size) if page_size > 0 else 0
    page = max(page, 1)
    start = (page - 1) * page_size
    return Page(
        items=list(items[start : start + page_size]),
        page=page,
        total_pages=total_pages,
        total_items=len(items),
    )


def compute_stats(
    sessions: Iterable[GamingSession],
    *,
    period: Period = Period.WEEK,
    average_type: AverageType = AverageType.SESSION,
    mode: AccountingMode = AccountingMode.BUDGET,
    now: datetime,
) -> HistoryStats:
    start = period_start(period, now)
    selected = [
        s
        for s in recorded_sessions(sessions)
        if start is None or s.start_time.astimezone() >= start
    ]
    total_seconds = total_time(selected, mode)

    if average_type is AverageType.SESSION:
        average = total_seconds // len(selected) if selected else 0
    else:
        days = group_by_day(selected)
        day_total = sum(total_time(group, mode) for group in days.values())
        average = day_total // len(days) if days else 0

    return HistoryStats(
        period=period,
        mode=mode,
        average_type=average_type,
        total_seconds=total_seconds,
        total_sessions=len(selected),
        social_sessions=sum(1 for s in selected if s.is_social_session),
        average_seconds=average,
    )


def aggregate_by_game(
    sessions: Iterable[GamingSession], mode: AccountingMode = AccountingMode.TOTAL
) -> list[tuple[str, int, int]]:
    """Return ``(game, seconds, session_count)`` rows, most played first."""
    groups: defaultdict[str, list[GamingSession]] = defaultdict(list)
    names: dict[str, str] = {}
    for session in recorded_sessions(sessions):
        name = display_game_name(session.game_name, session.process_name)
        key = normalize_process_name(session.process_name) or name.casefold()
        names.setdefault(key, name)
        groups[key].append(session)
    rows = [
        (names[key], total_time(group, mode), len(group))
        for key, group in groups.items()
    ]
    return sorted(rows, key=lambda row: row[1], reverse=True)


class SummaryPrinter:
    """Render human-readable summaries in the console."""

    def __init__(self, service: GameService) -> None:
        self.service = service

    def print_daily_summary(self, now: Optional[datetime] = None) -> None:
        now = now or datetime.now().astimezone()
        budget = self.service.get_realtime_budget_status()
        sessions = self.service.get_recent_sessions()
        today = filter_sessions(sessions, period=Period.TODAY, now=now)
        classification = classify(budget)

        print(f"Summary for {now.strftime('%Y-%m-%d')}")
        print("-" * 40)
        print(
            f"Budget:      {format_minutes(budget.used_today_minutes)} of "
            f"{format_minutes(budget.total_available_minutes)} used "
            f"({classification.percentage}%, {classification.status.value})"
        )
        print(f"Remaining:   {format_minutes(budget.remaining_today_minutes)}")
        print(f"Budget time: {format_duration(total_time(today, AccountingMode.BUDGET))}")
        print(f"Total time:  {format_duration(total_time(today, AccountingMode.TOTAL))}")

        if not today:
            print()
            print("No sessions recorded today.")
            return

        print()
        print("Top games:")
        for name, seconds, count in aggregate_by_game(today)[:5]:
            print(f"  {name[:30]:<30} {format_duration(seconds):>8}  ({count} sessions)")

    def print_history(
        self,
        *,
        period: Period,
        session_filter: SessionFilter,
        search: str,
        mode: AccountingMode,
        now: Optional[datetime] = None,
    ) -> None:
        now = now or datetime.now().astimezone()
        sessions = filter_sessions(
            self.service.get_recent_sessions(),
            period=period,
            session_filter=session_filter,
            search=search,
            now=now,
        )
        if not sessions:
            print("No sessions match the selected filters.")
            return

        label = "Budget time" if mode is AccountingMode.BUDGET else "Total playtime"
        print(f"{label} {period.label}: {format_duration(total_time(sessions, mode))}")
        for day, group in group_by_day(sessions).items():
            print()
            day_total = format_duration(total_time(group, mode))
            print(f"{day.strftime('%A, %b %d, %Y')}  {day_total}")
            ordered = sorted(group, key=lambda s: s.start_time.astimezone(), reverse=True)
            for session in ordered:
                flags = []
                if session.is_social_session:
                    flags.append("social")
                if session.is_concurrent:
                    flags.append("concurrent")
                name = display_game_name(session.game_name, session.process_name)
                suffix = f" [{', '.join(flags)}]" if flags else ""
                started = session.start_time.astimezone().strftime("%H:%M")
                duration = format_duration(session.duration_seconds or 0)
                print(f"  {started}  {name[:30]:<30} {duration:>8}{suffix}")
