"""Client for the backend that detects games and owns the budget records.

All methods return typed values or raise ServiceOfflineError / ServiceError.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx
from pydantic import ValidationError

from .models import BudgetStatus, GamingSession, LearningActivity, parse_sessions

logger = logging.getLogger(__name__)


class GameServiceError(Exception):
    """Base class for failures talking to the game service."""


class ServiceOfflineError(GameServiceError):
    """Raised when the service is unreachable."""


class ServiceError(GameServiceError):
    """Raised when the service returns an error or an unusable payload."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Service error {status_code}: {detail}")


class GameService(Protocol):
    """Remote operations offered by the game monitoring backend."""

    def get_current_sessions(self) -> list[GamingSession]: ...

    def get_total_active_time(self) -> int: ...

    def get_realtime_budget_status(self) -> BudgetStatus: ...

    def get_recent_sessions(self) -> list[GamingSession]: ...

    def add_budget_minutes(self, minutes: int) -> None: ...

    def remove_budget_minutes(self, minutes: int) -> None: ...

    def add_learning_activity(self, activity: LearningActivity) -> None: ...

    def close_all_games(self) -> list[str]: ...


class HttpGameService:
    """Synchronous httpx client for the game service's JSON API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _request(
        self, method: str, operation: str, json_data: Optional[dict[str, Any]] = None
    ) -> Any:
        url = f"{self.base_url}/api/{operation}"
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                resp = client.request(method, url, json=json_data)
        except httpx.ConnectError as exc:
            raise ServiceOfflineError("Game service is offline or unreachable") from exc
        except httpx.TimeoutException as exc:
            raise ServiceOfflineError("Game service request timed out") from exc
        except httpx.TransportError as exc:
            raise ServiceOfflineError(f"Connection to game service failed: {exc}") from exc

        if resp.status_code >= 400:
            detail = resp.text
            try:
                detail = resp.json().get("detail", resp.text)
            except (ValueError, AttributeError):
                pass
            raise ServiceError(resp.status_code, str(detail))

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise ServiceError(resp.status_code, f"Invalid JSON from {operation}") from exc

    def _get(self, operation: str) -> Any:
        return self._request("GET", operation)

    def _post(self, operation: str, json_data: dict[str, Any]) -> Any:
        return self._request("POST", operation, json_data)

    # Remote operations

    def get_current_sessions(self) -> list[GamingSession]:
        return parse_sessions(self._expect_list("get_current_sessions"))

    def get_recent_sessions(self) -> list[GamingSession]:
        return parse_sessions(self._expect_list("get_recent_sessions"))

    def get_total_active_time(self) -> int:
        payload = self._get("get_total_active_time")
        try:
            return max(int(payload), 0)
        except (TypeError, ValueError) as exc:
            raise ServiceError(200, f"Expected seconds, got {payload!r}") from exc

    def get_realtime_budget_status(self) -> BudgetStatus:
        payload = self._get("get_realtime_budget_status")
        try:
            return BudgetStatus.model_validate(payload)
        except ValidationError as exc:
            raise ServiceError(200, f"Malformed budget status: {exc}") from exc

    def add_budget_minutes(self, minutes: int) -> None:
        self._post("add_budget_minutes", {"minutes": minutes})
        logger.info("Added %d minutes to today's budget.", minutes)

    def remove_budget_minutes(self, minutes: int) -> None:
        self._post("remove_budget_minutes", {"minutes": minutes})
        logger.info("Removed %d minutes from today's budget.", minutes)

    def add_learning_activity(self, activity: LearningActivity) -> None:
        self._post("add_learning_activity", activity.model_dump(mode="json"))
        logger.info(
            "Submitted %s activity (%d min).",
            activity.activity_type,
            activity.duration_minutes,
        )

    def close_all_games(self) -> list[str]:
        payload = self._post("close_all_games", {})
        if not isinstance(payload, list):
            raise ServiceError(200, "Expected a list of closed games")
        return [str(name) for name in payload]

    def _expect_list(self, operation: str) -> list[Any]:
        payload = self._get(operation)
        if not isinstance(payload, list):
            raise ServiceError(200, f"Expected a list from {operation}")
        return payload
