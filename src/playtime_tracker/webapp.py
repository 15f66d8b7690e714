"""FastAPI application that exposes the playtime dashboard as a local JSON API."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from .accounting import AccountingMode, total_time
from .config import MonitorSettings
from .dashboard import ServiceSnapshot, budget_payload, build_dashboard, session_payload
from .formatting import format_duration
from .models import LearningActivity
from .monitor import BudgetMonitor
from .reporting import (
    AverageType,
    Period,
    SessionFilter,
    compute_stats,
    filter_sessions,
    group_by_day,
    paginate,
)
from .rewards import earned_minutes, known_activity_types
from .service import GameService, GameServiceError, HttpGameService, ServiceOfflineError

logger = logging.getLogger(__name__)


class MonitorRunner:
    """Run one BudgetMonitor on a daemon thread for the app's lifetime."""

    def __init__(self, monitor: BudgetMonitor) -> None:
        self._monitor = monitor
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._monitor.run_until_stopped,
                args=(self._stop_event,),
                name="budget-monitor",
                daemon=True,
            )
            self._thread.start()
        settings = self._monitor.settings
        logger.info(
            "Budget monitor polling %s every %.1fs.",
            settings.service_url,
            settings.poll_interval.total_seconds(),
        )

    def stop(self) -> Dict[str, Any]:
        """Stop polling and return the monitor's final status."""
        with self._lock:
            thread, stop_event = self._thread, self._stop_event
            self._thread = None
            self._stop_event = None
        if thread is not None and stop_event is not None and thread.is_alive():
            stop_event.set()
            # An in-flight request can take up to the request timeout.
            thread.join(timeout=self._monitor.settings.request_timeout + 1)
        final = self._monitor.status()
        if final["last_error"]:
            logger.warning(
                "Budget monitor stopped after %d failed polls; last error: %s",
                final["consecutive_failures"],
                final["last_error"],
            )
        else:
            logger.info("Monitor background thread stopped.")
        return final

    def is_running(self) -> bool:
        with self._lock:
            return bool(self._thread and self._thread.is_alive())


class LearningPayload(BaseModel):
    activity_type: str = Field(min_length=1)
    description: str = ""
    duration_minutes: int = Field(ge=0)

    model_config = ConfigDict(extra="forbid")


class BudgetAdjustment(BaseModel):
    minutes: int = Field(gt=0)

    model_config = ConfigDict(extra="forbid")


def create_app(
    *,
    service: Optional[GameService] = None,
    settings: Optional[MonitorSettings] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_settings = settings or MonitorSettings()
    resolved_service = service or HttpGameService(
        resolved_settings.service_url, timeout=resolved_settings.request_timeout
    )
    now = clock or (lambda: datetime.now().astimezone())
    monitor = BudgetMonitor(resolved_service, resolved_settings, clock=now)
    runner = MonitorRunner(monitor)

    app = FastAPI(title="Playtime Tracker", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = resolved_service
    app.state.monitor = monitor
    app.state.monitor_runner = runner

    @app.on_event("startup")
    async def _startup() -> None:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        runner.start()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        runner.stop()

    def _snapshot(request: Request) -> ServiceSnapshot:
        current: BudgetMonitor = request.app.state.monitor
        snapshot = current.snapshot
        if snapshot.fetched_at is None:
            # Nothing polled yet (monitor thread not started); fetch on demand.
            snapshot = current.refresh()
        return snapshot

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        return {
            "monitor_running": request.app.state.monitor_runner.is_running(),
            **request.app.state.monitor.status(),
        }

    @app.get("/api/dashboard")
    def dashboard(
        request: Request,
        mode: AccountingMode = Query(default=AccountingMode.BUDGET),
    ) -> Dict[str, Any]:
        view = build_dashboard(_snapshot(request), mode=mode, now=now())
        return view.to_dict()

    @app.get("/api/history")
    def history(
        request: Request,
        period: Period = Query(default=Period.WEEK, alias="range"),
        session_filter: SessionFilter = Query(default=SessionFilter.ALL, alias="filter"),
        search: str = Query(default=""),
        page: int = Query(default=1, ge=1),
        mode: AccountingMode = Query(default=AccountingMode.BUDGET),
        view: str = Query(default="list", pattern="^(list|daily)$"),
    ) -> Dict[str, Any]:
        sessions = filter_sessions(
            _snapshot(request).recent_sessions,
            period=period,
            session_filter=session_filter,
            search=search,
            now=now(),
        )
        total_seconds = total_time(sessions, mode)
        payload: Dict[str, Any] = {
            "range": period.value,
            "filter": session_filter.value,
            "mode": mode.value,
            "totals": {
                "seconds": total_seconds,
                "display": format_duration(total_seconds),
                "sessions": len(sessions),
                "social_sessions": sum(1 for s in sessions if s.is_social_session),
            },
        }
        if view == "daily":
            payload["days"] = [
                {
                    "date": day.isoformat(),
                    "seconds": total_time(group, mode),
                    "display": format_duration(total_time(group, mode)),
                    "sessions": [session_payload(s) for s in group],
                }
                for day, group in group_by_day(sessions).items()
            ]
            return payload

        page_result = paginate(sessions, page, resolved_settings.history_page_size)
        payload.update(
            {
                "page": page_result.page,
                "total_pages": page_result.total_pages,
                "sessions": [session_payload(s) for s in page_result.items],
            }
        )
        return payload

    @app.get("/api/stats")
    def stats(
        request: Request,
        timeframe: Period = Query(default=Period.WEEK),
        average: AverageType = Query(default=AverageType.SESSION),
        mode: AccountingMode = Query(default=AccountingMode.BUDGET),
    ) -> Dict[str, Any]:
        result = compute_stats(
            _snapshot(request).recent_sessions,
            period=timeframe,
            average_type=average,
            mode=mode,
            now=now(),
        )
        return result.to_dict()

    @app.get("/api/budget")
    def budget(request: Request) -> Dict[str, Any]:
        snapshot = _snapshot(request)
        if snapshot.budget is None:
            raise HTTPException(status_code=503, detail="Budget status unavailable")
        return budget_payload(snapshot.budget)

    @app.get("/api/alerts")
    def alerts(request: Request) -> Dict[str, Any]:
        current: BudgetMonitor = request.app.state.monitor
        state = current.alert_state
        return {
            "severity": state.severity.value,
            "latched": {
                "warning": state.warning_latched,
                "critical": state.critical_latched,
                "exceeded": state.exceeded_latched,
            },
            "recent": [
                {
                    "level": alert.level.value,
                    "title": alert.title,
                    "message": alert.message,
                    "remaining_minutes": alert.remaining_minutes,
                    "escalated": alert.escalated,
                    "close_games": alert.close_games,
                }
                for alert in current.recent_alerts()
            ],
        }

    @app.post("/api/learning/preview")
    def preview_learning(payload: LearningPayload) -> Dict[str, Any]:
        return {
            "activity_type": payload.activity_type,
            "duration_minutes": payload.duration_minutes,
            "earned_gaming_minutes": earned_minutes(
                payload.activity_type, payload.duration_minutes
            ),
            "known_types": known_activity_types(),
        }

    @app.post("/api/learning")
    def submit_learning(payload: LearningPayload, request: Request) -> Dict[str, Any]:
        activity = LearningActivity.create(
            payload.activity_type,
            payload.description,
            payload.duration_minutes,
            now=now(),
        )
        _call_service(lambda: request.app.state.service.add_learning_activity(activity))
        request.app.state.monitor.refresh()
        return {"activity": activity.model_dump(mode="json")}

    @app.post("/api/budget/add")
    def add_budget(payload: BudgetAdjustment, request: Request) -> Dict[str, Any]:
        _call_service(lambda: request.app.state.service.add_budget_minutes(payload.minutes))
        request.app.state.monitor.refresh()
        return {"added_minutes": payload.minutes}

    @app.post("/api/budget/remove")
    def remove_budget(payload: BudgetAdjustment, request: Request) -> Dict[str, Any]:
        _call_service(
            lambda: request.app.state.service.remove_budget_minutes(payload.minutes)
        )
        request.app.state.monitor.refresh()
        return {"removed_minutes": payload.minutes}

    @app.post("/api/games/close")
    def close_games(request: Request) -> Dict[str, Any]:
        closed = _call_service(request.app.state.monitor.close_games_now)
        return {"closed_games": closed}

    return app


def _call_service(action: Callable[[], Any]) -> Any:
    try:
        return action()
    except ServiceOfflineError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except GameServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
