"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Optional

import pytest

from playtime_tracker.models import BudgetStatus, GamingSession, LearningActivity
from playtime_tracker.service import ServiceOfflineError

# Wednesday, local time; the week started on Sunday 2024-06-09.
NOW = datetime(2024, 6, 12, 15, 0).astimezone()


class FakeGameService:
    """In-memory stand-in for the game monitoring service."""

    def __init__(self) -> None:
        self.current_sessions: list[GamingSession] = []
        self.total_active_time = 0
        self.budget = BudgetStatus(
            daily_allowance_minutes=120,
            used_today_minutes=30,
            remaining_today_minutes=90,
            total_available_minutes=120,
        )
        self.recent_sessions: list[GamingSession] = []
        self.running_games: list[str] = []
        self.learning: list[LearningActivity] = []
        self.adjustments: list[int] = []
        self.offline = False

    def _check(self) -> None:
        if self.offline:
            raise ServiceOfflineError("Game service is offline or unreachable")

    def get_current_sessions(self) -> list[GamingSession]:
        self._check()
        return list(self.current_sessions)

    def get_total_active_time(self) -> int:
        self._check()
        return self.total_active_time

    def get_realtime_budget_status(self) -> BudgetStatus:
        self._check()
        return self.budget

    def get_recent_sessions(self) -> list[GamingSession]:
        self._check()
        return list(self.recent_sessions)

    def add_budget_minutes(self, minutes: int) -> None:
        self._check()
        self.adjustments.append(minutes)

    def remove_budget_minutes(self, minutes: int) -> None:
        self._check()
        self.adjustments.append(-minutes)

    def add_learning_activity(self, activity: LearningActivity) -> None:
        self._check()
        self.learning.append(activity)

    def close_all_games(self) -> list[str]:
        self._check()
        closed, self.running_games = self.running_games, []
        return closed

    def set_remaining(self, remaining: int) -> None:
        self.budget = self.budget.model_copy(
            update={"remaining_today_minutes": remaining}
        )


SessionFactory = Callable[..., GamingSession]


@pytest.fixture
def make_session() -> SessionFactory:
    """Build a session starting ``start`` minutes after NOW, lasting ``minutes``."""

    def _make(
        start: float,
        minutes: Optional[float],
        game: str = "Valorant",
        *,
        social: bool = False,
        concurrent: bool = False,
        session_id: Optional[str] = None,
    ) -> GamingSession:
        start_time = NOW + timedelta(minutes=start)
        end_time = start_time + timedelta(minutes=minutes) if minutes is not None else None
        return GamingSession(
            id=session_id,
            game_name=game,
            process_name=f"{game.lower().replace(' ', '_')}.exe",
            start_time=start_time,
            end_time=end_time,
            duration_seconds=minutes * 60 if minutes is not None else None,
            is_social_session=social,
            is_concurrent=concurrent,
        )

    return _make


@pytest.fixture
def fake_service() -> FakeGameService:
    return FakeGameService()


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: NOW
