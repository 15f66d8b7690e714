"""View state for the dashboard cards, derived from one service snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional

from .accounting import AccountingMode, current_session_duration, total_time
from .budget import BudgetClassification, classify, is_low_budget, is_over_budget
from .formatting import format_duration, format_minutes
from .models import BudgetStatus, GamingSession
from .normalization import display_game_name
from .reporting import Period, in_period, recorded_sessions

WEEKLY_WINDOW = timedelta(days=7)


@dataclass(slots=True)
class ServiceSnapshot:
    """Everything fetched from the service during one poll."""

    active_sessions: list[GamingSession] = field(default_factory=list)
    total_active_seconds: int = 0
    budget: Optional[BudgetStatus] = None
    recent_sessions: list[GamingSession] = field(default_factory=list)
    fetched_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class DashboardView:
    mode: AccountingMode
    active_count: int
    current_label: Optional[str]
    current_seconds: int
    active_games: list[tuple[str, int]]
    todays_sessions: list[GamingSession]
    weekly_seconds: int
    budget: Optional[BudgetStatus]
    classification: Optional[BudgetClassification]

    @property
    def over_budget(self) -> bool:
        return self.budget is not None and is_over_budget(self.budget)

    @property
    def low_budget(self) -> bool:
        return self.budget is not None and is_low_budget(self.budget)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "current_session": {
                "active_count": self.active_count,
                "label": self.current_label,
                "seconds": self.current_seconds,
                "display": format_duration(self.current_seconds) if self.active_count else None,
                "games": [
                    {"name": name, "seconds": seconds, "display": format_duration(seconds)}
                    for name, seconds in self.active_games
                ],
            },
            "today": {
                "session_count": len(self.todays_sessions),
                "sessions": [session_payload(s) for s in self.todays_sessions],
            },
            "weekly": {
                "seconds": self.weekly_seconds,
                "display": format_duration(self.weekly_seconds),
            },
            "budget": budget_payload(self.budget) if self.budget is not None else None,
        }


def build_dashboard(
    snapshot: ServiceSnapshot,
    *,
    mode: AccountingMode = AccountingMode.BUDGET,
    now: datetime,
) -> DashboardView:
    active = snapshot.active_sessions
    if len(active) == 1:
        label: Optional[str] = display_game_name(active[0].game_name, active[0].process_name)
    elif active:
        label = f"{len(active)} concurrent games"
    else:
        label = None

    week_start = now.astimezone() - WEEKLY_WINDOW
    weekly = [
        s
        for s in recorded_sessions(snapshot.recent_sessions)
        if s.start_time.astimezone() >= week_start
    ]

    budget = snapshot.budget
    return DashboardView(
        mode=mode,
        active_count=len(active),
        current_label=label,
        # The service's figure wins; it is 0 before its first reconciliation.
        current_seconds=(
            snapshot.total_active_seconds or current_session_duration(active, now)
        ),
        active_games=[
            (display_game_name(s.game_name, s.process_name), s.current_duration(now))
            for s in active
        ],
        # Open and zero-length sessions still show on today's card.
        todays_sessions=[
            s for s in snapshot.recent_sessions if in_period(s, Period.TODAY, now)
        ],
        weekly_seconds=total_time(weekly, mode),
        budget=budget,
        classification=classify(budget) if budget is not None else None,
    )


def budget_payload(budget: BudgetStatus) -> dict[str, Any]:
    classification = classify(budget)
    return {
        **budget.model_dump(),
        "percentage": classification.percentage,
        "status": classification.status.value,
        "remaining_display": format_minutes(budget.remaining_today_minutes),
        "over_budget": is_over_budget(budget),
        "low_budget": is_low_budget(budget),
    }


def session_payload(session: GamingSession) -> dict[str, Any]:
    payload = session.model_dump(mode="json")
    payload["display_name"] = display_game_name(session.game_name, session.process_name)
    payload["duration_display"] = format_duration(session.duration_seconds or 0)
    return payload
