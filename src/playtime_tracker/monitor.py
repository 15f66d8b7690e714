"""Budget monitor that polls the game service at a fixed interval."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from .alerts import Alert, AlertState, Severity, advance
from .config import MonitorSettings
from .dashboard import ServiceSnapshot
from .service import GameService, GameServiceError

logger = logging.getLogger(__name__)

AlertHandler = Callable[[Alert], None]
TimerFactory = Callable[[float, Callable[[], None]], Any]

RECENT_ALERT_LIMIT = 20


def log_alert(alert: Alert) -> None:
    """Default alert handler: surface the alert in the log."""
    level = logging.INFO if alert.level is Severity.WARNING else logging.WARNING
    logger.log(level, "%s: %s", alert.title, alert.message)


@dataclass(slots=True)
class MonitorState:
    snapshot: ServiceSnapshot = field(default_factory=ServiceSnapshot)
    alert_state: AlertState = field(default_factory=AlertState)
    recent_alerts: deque[Alert] = field(
        default_factory=lambda: deque(maxlen=RECENT_ALERT_LIMIT)
    )
    last_error: Optional[str] = None
    consecutive_failures: int = 0
    last_closed_games: Optional[list[str]] = None


class BudgetMonitor:
    """Fetches service snapshots, tracks alert escalation and auto-closes games."""

    def __init__(
        self,
        service: GameService,
        settings: MonitorSettings,
        on_alert: Optional[AlertHandler] = None,
        clock: Optional[Callable[[], datetime]] = None,
        timer_factory: Optional[TimerFactory] = None,
    ) -> None:
        self.service = service
        self.settings = settings
        self._on_alert = on_alert or log_alert
        self._clock = clock or (lambda: datetime.now().astimezone())
        self._timer_factory = timer_factory or threading.Timer
        self._state = MonitorState()
        self._lock = threading.Lock()
        self._close_timer: Any = None

    @property
    def snapshot(self) -> ServiceSnapshot:
        with self._lock:
            return self._state.snapshot

    @property
    def alert_state(self) -> AlertState:
        with self._lock:
            return self._state.alert_state

    def recent_alerts(self) -> list[Alert]:
        with self._lock:
            return list(self._state.recent_alerts)

    def status(self) -> dict[str, Any]:
        with self._lock:
            fetched_at = self._state.snapshot.fetched_at
            return {
                "service_url": self.settings.service_url,
                "poll_seconds": self.settings.poll_interval.total_seconds(),
                "last_refresh": fetched_at.isoformat() if fetched_at else None,
                "last_error": self._state.last_error,
                "consecutive_failures": self._state.consecutive_failures,
                "alert_severity": self._state.alert_state.severity.value,
                "last_closed_games": self._state.last_closed_games,
            }

    def refresh(self) -> ServiceSnapshot:
        """Fetch a fresh snapshot, keeping the last known one if the fetch fails."""
        try:
            snapshot = ServiceSnapshot(
                active_sessions=self.service.get_current_sessions(),
                total_active_seconds=self.service.get_total_active_time(),
                budget=self.service.get_realtime_budget_status(),
                recent_sessions=self.service.get_recent_sessions(),
                fetched_at=self._clock(),
            )
        except GameServiceError as exc:
            with self._lock:
                self._state.last_error = str(exc)
                self._state.consecutive_failures += 1
                failures = self._state.consecutive_failures
                snapshot = self._state.snapshot
            logger.warning("Failed to fetch service data (%d in a row): %s", failures, exc)
            return snapshot

        with self._lock:
            if self._state.consecutive_failures:
                logger.info("Game service reachable again.")
            self._state.snapshot = snapshot
            self._state.last_error = None
            self._state.consecutive_failures = 0
        return snapshot

    def poll_once(self) -> list[Alert]:
        """Refresh and evaluate budget thresholds; returns alerts raised this tick."""
        snapshot = self.refresh()
        if snapshot.budget is None:
            return []
        return self.evaluate(
            snapshot.budget.remaining_today_minutes,
            sessions_active=bool(snapshot.active_sessions),
        )

    def evaluate(self, remaining: int, *, sessions_active: bool = True) -> list[Alert]:
        with self._lock:
            transition = advance(
                self._state.alert_state, remaining, sessions_active=sessions_active
            )
            self._state.alert_state = transition.state
            self._state.recent_alerts.extend(transition.alerts)
            if not transition.state.exceeded_latched:
                self._cancel_close_if_configured()

        for alert in transition.alerts:
            logger.debug(
                "Alert raised: level=%s remaining=%d escalated=%s",
                alert.level.value,
                alert.remaining_minutes,
                alert.escalated,
            )
            self._dispatch(alert)
            if alert.close_games:
                self._schedule_close()
        return transition.alerts

    def close_games_now(self) -> list[str]:
        closed = self.service.close_all_games()
        with self._lock:
            self._state.last_closed_games = closed
        if closed:
            logger.info("Closed games: %s", ", ".join(closed))
        else:
            logger.info("No games were running to close.")
        return closed

    def run_forever(self) -> None:
        stop_event = threading.Event()
        try:
            self._run_loop(stop_event)
        except KeyboardInterrupt:
            logger.info("Monitor interrupted.")
        finally:
            self._shutdown()

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        """Run the monitor until the provided event is set."""
        try:
            self._run_loop(stop_event)
        finally:
            self._shutdown()

    def _dispatch(self, alert: Alert) -> None:
        try:
            self._on_alert(alert)
        except Exception:
            logger.exception("Alert handler failed for %s alert.", alert.level.value)

    def _schedule_close(self) -> None:
        delay = self.settings.auto_close_delay.total_seconds()
        logger.warning("Budget exceeded; closing games in %.0f seconds.", delay)
        timer = self._timer_factory(delay, self._auto_close)
        timer.daemon = True
        with self._lock:
            self._close_timer = timer
        timer.start()

    def _cancel_close_if_configured(self) -> None:
        # Caller holds self._lock.
        if self._close_timer is None:
            return
        if self.settings.cancel_close_on_recovery:
            self._close_timer.cancel()
            logger.info("Budget recovered; cancelled pending game close.")
        self._close_timer = None

    def _auto_close(self) -> None:
        with self._lock:
            self._close_timer = None
        try:
            self.close_games_now()
        except GameServiceError:
            logger.exception("Could not close games automatically; close them manually.")

    def _run_loop(self, stop_event: threading.Event) -> None:
        logger.info("Starting budget monitor against %s", self.settings.service_url)
        interval = self.settings.poll_interval.total_seconds()
        while not stop_event.is_set():
            self.poll_once()
            stop_event.wait(interval)

    def _shutdown(self) -> None:
        logger.info("Budget monitor stopped.")
