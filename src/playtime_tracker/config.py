"""Configuration models and helpers for the playtime tracker."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

DEFAULT_SERVICE_URL = "http://127.0.0.1:1420"


@dataclass(slots=True)
class MonitorSettings:
    """Runtime configuration for the budget monitor."""

    service_url: str = DEFAULT_SERVICE_URL
    poll_interval: timedelta = timedelta(seconds=1)
    request_timeout: float = 5.0
    auto_close_delay: timedelta = timedelta(seconds=5)
    cancel_close_on_recovery: bool = False
    history_page_size: int = 10

    @classmethod
    def from_intervals(
        cls,
        poll_seconds: float,
        service_url: str | None = None,
        auto_close_seconds: float | None = None,
        request_timeout: float | None = None,
        cancel_close_on_recovery: bool = False,
    ) -> "MonitorSettings":
        timeout = request_timeout if request_timeout is not None else max(poll_seconds * 5, 5.0)
        close_delay = auto_close_seconds if auto_close_seconds is not None else 5.0
        return cls(
            service_url=service_url or DEFAULT_SERVICE_URL,
            poll_interval=timedelta(seconds=poll_seconds),
            request_timeout=timeout,
            auto_close_delay=timedelta(seconds=close_delay),
            cancel_close_on_recovery=cancel_close_on_recovery,
        )
