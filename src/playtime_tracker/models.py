"""Domain models exchanged with the game monitoring service."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from .rewards import earned_minutes

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class GamingSession(BaseModel):
    """One recorded instance of a monitored game process running."""

    id: Optional[str] = None
    game_name: str = ""
    process_name: str = ""
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    is_social_session: bool = False
    is_concurrent: bool = False
    concurrent_session_ids: list[str] = []

    model_config = ConfigDict(frozen=True)

    @property
    def is_closed(self) -> bool:
        return self.end_time is not None and self.duration_seconds is not None

    def current_duration(self, now: datetime) -> int:
        """Whole seconds elapsed, measured to ``now`` while the session is open."""
        end = self.end_time if self.end_time is not None else now
        elapsed = (end.astimezone() - self.start_time.astimezone()).total_seconds()
        return max(int(elapsed), 0)


class BudgetStatus(BaseModel):
    """Budget snapshot in minutes; ``remaining_today_minutes`` may go negative."""

    daily_allowance_minutes: int = 0
    used_today_minutes: int = 0
    remaining_today_minutes: int = 0
    rollover_minutes: int = 0
    earned_minutes: int = 0
    total_available_minutes: int = 0

    model_config = ConfigDict(frozen=True)


class LearningActivity(BaseModel):
    id: Optional[str] = None
    activity_type: str
    description: str = ""
    duration_minutes: int
    earned_gaming_minutes: int = 0
    timestamp: datetime

    model_config = ConfigDict(frozen=True)

    @classmethod
    def create(
        cls,
        activity_type: str,
        description: str,
        duration_minutes: int,
        now: Optional[datetime] = None,
    ) -> "LearningActivity":
        """Build an activity with a client-side preview of the earned minutes."""
        return cls(
            activity_type=activity_type,
            description=description,
            duration_minutes=duration_minutes,
            earned_gaming_minutes=earned_minutes(activity_type, duration_minutes),
            timestamp=now or datetime.now().astimezone(),
        )


def parse_sessions(items: Iterable[Any]) -> list[GamingSession]:
    return _parse_each(GamingSession, items)


def _parse_each(model: type[ModelT], items: Iterable[Any]) -> list[ModelT]:
    # Entries that fail validation are dropped so one bad row never hides the rest.
    parsed: list[ModelT] = []
    for index, item in enumerate(items):
        try:
            parsed.append(model.model_validate(item))
        except ValidationError as exc:
            logger.warning(
                "Skipping malformed %s at index %d: %s",
                model.__name__,
                index,
                exc.errors()[0]["msg"] if exc.errors() else exc,
            )
    return parsed
