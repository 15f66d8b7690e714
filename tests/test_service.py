"""Tests for the httpx game service client."""

from __future__ import annotations

import json

import httpx
import pytest

from playtime_tracker.models import LearningActivity
from playtime_tracker.service import HttpGameService, ServiceError, ServiceOfflineError

from conftest import NOW

BASE_URL = "http://service.test"


def _client(handler) -> HttpGameService:
    return HttpGameService(BASE_URL, transport=httpx.MockTransport(handler))


class TestReads:
    def test_sessions(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            assert request.url.path == "/api/get_recent_sessions"
            return httpx.Response(
                200,
                json=[
                    {
                        "id": "a",
                        "game_name": "Valorant",
                        "process_name": "valorant.exe",
                        "start_time": "2024-06-12T10:00:00Z",
                        "end_time": "2024-06-12T11:00:00Z",
                        "duration_seconds": 3600,
                        "is_social_session": False,
                        "is_concurrent": True,
                        "concurrent_session_ids": ["b"],
                    },
                    {"game_name": "broken"},
                ],
            )

        sessions = _client(handler).get_recent_sessions()
        assert len(sessions) == 1
        assert sessions[0].concurrent_session_ids == ["b"]
        assert sessions[0].is_closed

    def test_total_active_time(self) -> None:
        client = _client(lambda request: httpx.Response(200, json=125))
        assert client.get_total_active_time() == 125

    def test_total_active_time_rejects_garbage(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={"seconds": 1}))
        with pytest.raises(ServiceError):
            client.get_total_active_time()

    def test_budget_status(self) -> None:
        payload = {
            "daily_allowance_minutes": 120,
            "used_today_minutes": 130,
            "remaining_today_minutes": -10,
            "rollover_minutes": 0,
            "earned_minutes": 0,
            "total_available_minutes": 120,
        }
        client = _client(lambda request: httpx.Response(200, json=payload))
        budget = client.get_realtime_budget_status()
        assert budget.remaining_today_minutes == -10

    def test_malformed_budget(self) -> None:
        client = _client(
            lambda request: httpx.Response(200, json={"used_today_minutes": "lots"})
        )
        with pytest.raises(ServiceError):
            client.get_realtime_budget_status()

    def test_sessions_must_be_a_list(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={"sessions": []}))
        with pytest.raises(ServiceError):
            client.get_current_sessions()


class TestWrites:
    def test_budget_adjustments(self) -> None:
        seen: list[tuple[str, dict]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.url.path, json.loads(request.content)))
            return httpx.Response(200)

        client = _client(handler)
        client.add_budget_minutes(15)
        client.remove_budget_minutes(5)
        assert seen == [
            ("/api/add_budget_minutes", {"minutes": 15}),
            ("/api/remove_budget_minutes", {"minutes": 5}),
        ]

    def test_learning_activity(self) -> None:
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(204)

        activity = LearningActivity.create("exercise", "Run", 30, now=NOW)
        _client(handler).add_learning_activity(activity)
        assert seen[0]["activity_type"] == "exercise"
        assert seen[0]["earned_gaming_minutes"] == 10

    def test_close_all_games(self) -> None:
        client = _client(lambda request: httpx.Response(200, json=["Valorant", "Dota 2"]))
        assert client.close_all_games() == ["Valorant", "Dota 2"]


class TestErrors:
    def test_offline(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ServiceOfflineError):
            _client(handler).get_current_sessions()

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(ServiceOfflineError):
            _client(handler).get_total_active_time()

    @pytest.mark.parametrize(
        "error",
        [httpx.ReadError, httpx.RemoteProtocolError, httpx.WriteError],
    )
    def test_dropped_connection(self, error) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise error("server disconnected", request=request)

        with pytest.raises(ServiceOfflineError):
            _client(handler).get_realtime_budget_status()

    def test_http_error_detail(self) -> None:
        client = _client(
            lambda request: httpx.Response(500, json={"detail": "database locked"})
        )
        with pytest.raises(ServiceError) as excinfo:
            client.add_budget_minutes(5)
        assert excinfo.value.status_code == 500
        assert excinfo.value.detail == "database locked"

    def test_invalid_json(self) -> None:
        client = _client(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(ServiceError):
            client.get_recent_sessions()

    def test_base_url_trailing_slash(self) -> None:
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(str(request.url))
            return httpx.Response(200, json=[])

        HttpGameService(
            BASE_URL + "/", transport=httpx.MockTransport(handler)
        ).get_current_sessions()
        assert paths == [f"{BASE_URL}/api/get_current_sessions"]
