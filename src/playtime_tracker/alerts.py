"""Escalating budget alerts driven by the remaining-minutes reading.

The alert state is a plain value: :func:`advance` takes the previous state
and a new reading and returns the next state plus any alerts to deliver. The
owner (normally :class:`~playtime_tracker.monitor.BudgetMonitor`) keeps the
state for the lifetime of one monitoring session.

Each threshold fires at most once until the budget recovers above it. The
current severity only ever rises while the budget stays under a threshold and
drops back to ``none`` when the budget recovers above the threshold that set
it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Optional

WARNING_MINUTES = 5
CRITICAL_MINUTES = 1


class Severity(str, enum.Enum):
    NONE = "none"
    WARNING = "warning"
    CRITICAL = "critical"
    EXCEEDED = "exceeded"

    @property
    def rank(self) -> int:
        return _RANKS[self]


_RANKS = {
    Severity.NONE: 0,
    Severity.WARNING: 1,
    Severity.CRITICAL: 2,
    Severity.EXCEEDED: 3,
}


@dataclass(frozen=True, slots=True)
class AlertState:
    severity: Severity = Severity.NONE
    warning_latched: bool = False
    critical_latched: bool = False
    exceeded_latched: bool = False


@dataclass(frozen=True, slots=True)
class Alert:
    level: Severity
    title: str
    message: str
    remaining_minutes: int
    escalated: bool = False
    close_games: bool = False


@dataclass(frozen=True, slots=True)
class AlertTransition:
    state: AlertState
    alerts: list[Alert] = field(default_factory=list)

    @property
    def latest(self) -> Optional[Alert]:
        return self.alerts[-1] if self.alerts else None


def advance(
    state: AlertState, remaining: int, *, sessions_active: bool = True
) -> AlertTransition:
    """Apply one remaining-minutes reading to ``state``.

    Recovery is evaluated on every reading. New alerts are only raised while
    at least one game session is running.
    """
    state = _recover(state, remaining)
    alerts: list[Alert] = []
    if not sessions_active:
        return AlertTransition(state=state, alerts=alerts)

    if CRITICAL_MINUTES < remaining <= WARNING_MINUTES and not state.warning_latched:
        state = replace(state, warning_latched=True)
        state, alert = _raise(state, _warning_alert(remaining))
        alerts.append(alert)

    if 0 < remaining <= CRITICAL_MINUTES and not state.critical_latched:
        state = replace(state, critical_latched=True)
        state, alert = _raise(state, _critical_alert(remaining))
        alerts.append(alert)

    if remaining <= 0 and not state.exceeded_latched:
        state = replace(state, exceeded_latched=True)
        state, alert = _raise(state, _exceeded_alert())
        alerts.append(alert)

    return AlertTransition(state=state, alerts=alerts)


def _recover(state: AlertState, remaining: int) -> AlertState:
    if remaining > WARNING_MINUTES:
        state = _clear(state, Severity.WARNING, warning_latched=False)
    if remaining > CRITICAL_MINUTES:
        state = _clear(state, Severity.CRITICAL, critical_latched=False)
    if remaining > 0:
        state = _clear(state, Severity.EXCEEDED, exceeded_latched=False)
    return state


def _clear(state: AlertState, level: Severity, **latch: bool) -> AlertState:
    state = replace(state, **latch)
    if state.severity is level:
        state = replace(state, severity=Severity.NONE)
    return state


def _raise(state: AlertState, alert: Alert) -> tuple[AlertState, Alert]:
    if alert.level.rank <= state.severity.rank:
        return state, alert
    return replace(state, severity=alert.level), replace(alert, escalated=True)


def _warning_alert(remaining: int) -> Alert:
    return Alert(
        level=Severity.WARNING,
        title="Gaming Time Warning",
        message=(
            f"You have {remaining} minutes left in your gaming budget today. "
            "Consider wrapping up your current session soon!"
        ),
        remaining_minutes=remaining,
    )


def _critical_alert(remaining: int) -> Alert:
    plural = "" if remaining == 1 else "s"
    return Alert(
        level=Severity.CRITICAL,
        title="Final Warning",
        message=(
            f"Only {remaining} minute{plural} remaining! "
            "Please save your progress and prepare to close your games."
        ),
        remaining_minutes=remaining,
    )


def _exceeded_alert() -> Alert:
    return Alert(
        level=Severity.EXCEEDED,
        title="Gaming Time Exceeded",
        message=(
            "Your gaming time budget has been exceeded. "
            "Games will be closed automatically."
        ),
        remaining_minutes=0,
        close_games=True,
    )
