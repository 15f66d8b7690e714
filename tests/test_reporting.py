"""Tests for history filters and statistics."""

from __future__ import annotations

from datetime import date

from playtime_tracker.accounting import AccountingMode
from playtime_tracker.normalization import display_game_name, game_label_from_process
from playtime_tracker.reporting import (
    AverageType,
    Period,
    SessionFilter,
    SummaryPrinter,
    aggregate_by_game,
    compute_stats,
    filter_sessions,
    group_by_day,
    paginate,
    period_start,
)

from conftest import NOW

DAY = 24 * 60


class TestPeriods:
    def test_period_start(self) -> None:
        assert period_start(Period.TODAY, NOW).date() == date(2024, 6, 12)
        assert period_start(Period.WEEK, NOW).date() == date(2024, 6, 9)
        assert period_start(Period.MONTH, NOW).date() == date(2024, 6, 1)
        assert period_start(Period.ALL, NOW) is None

    def test_labels(self) -> None:
        assert Period.WEEK.label == "this week"
        assert Period.ALL.label == "all time"


class TestFilterSessions:
    def test_period_filter(self, make_session) -> None:
        today = make_session(-120, 30)
        monday = make_session(-2 * DAY, 30)
        last_month = make_session(-20 * DAY, 30)
        sessions = [today, monday, last_month]
        assert filter_sessions(sessions, period=Period.TODAY, now=NOW) == [today]
        assert filter_sessions(sessions, period=Period.WEEK, now=NOW) == [today, monday]
        assert filter_sessions(sessions, period=Period.ALL, now=NOW) == sessions

    def test_excludes_open_and_zero_duration(self, make_session) -> None:
        sessions = [make_session(-30, None), make_session(-60, 0), make_session(-90, 10)]
        assert len(filter_sessions(sessions, period=Period.ALL, now=NOW)) == 1

    def test_type_filters(self, make_session) -> None:
        social = make_session(-60, 10, social=True)
        solo = make_session(-50, 10)
        concurrent = make_session(-40, 10, concurrent=True)
        sessions = [social, solo, concurrent]
        assert filter_sessions(
            sessions, session_filter=SessionFilter.SOCIAL, now=NOW
        ) == [social]
        assert filter_sessions(
            sessions, session_filter=SessionFilter.SOLO, now=NOW
        ) == [solo, concurrent]
        assert filter_sessions(
            sessions, session_filter=SessionFilter.CONCURRENT, now=NOW
        ) == [concurrent]

    def test_search_is_case_insensitive(self, make_session) -> None:
        sessions = [make_session(-60, 10, "Rocket League"), make_session(-30, 10, "Dota 2")]
        result = filter_sessions(sessions, search="ROCKET", now=NOW)
        assert [s.game_name for s in result] == ["Rocket League"]


class TestGroupingAndPaging:
    def test_group_by_day_newest_first(self, make_session) -> None:
        sessions = [make_session(-2 * DAY, 10), make_session(-60, 10), make_session(-30, 10)]
        groups = group_by_day(sessions)
        assert list(groups) == [date(2024, 6, 12), date(2024, 6, 10)]
        assert len(groups[date(2024, 6, 12)]) == 2

    def test_paginate(self) -> None:
        items = list(range(23))
        page = paginate(items, 3, 10)
        assert page.items == [20, 21, 22]
        assert page.total_pages == 3
        assert page.total_items == 23

    def test_paginate_clamps_page(self) -> None:
        page = paginate([1, 2], 0, 10)
        assert page.page == 1
        assert page.items == [1, 2]

    def test_paginate_empty(self) -> None:
        page = paginate([], 1, 10)
        assert page.items == []
        assert page.total_pages == 0


class TestComputeStats:
    def test_budget_vs_total(self, make_session) -> None:
        sessions = [
            make_session(-120, 60, "Valorant", social=True),
            make_session(-90, 60, "Dota 2", concurrent=True),
        ]
        budget = compute_stats(sessions, period=Period.TODAY, now=NOW)
        total = compute_stats(
            sessions, period=Period.TODAY, mode=AccountingMode.TOTAL, now=NOW
        )
        assert budget.total_seconds == 90 * 60
        assert total.total_seconds == 120 * 60
        assert budget.total_sessions == 2
        assert budget.social_sessions == 1
        assert budget.average_seconds == 45 * 60

    def test_average_per_day(self, make_session) -> None:
        sessions = [
            make_session(-60, 60),
            make_session(-DAY - 60, 30),
            make_session(-DAY - 30, 30),
        ]
        stats = compute_stats(
            sessions, period=Period.WEEK, average_type=AverageType.DAY, now=NOW
        )
        assert stats.total_seconds == 2 * 3600
        assert stats.average_seconds == 3600
        assert stats.average_label == "per day (this week)"

    def test_empty(self) -> None:
        stats = compute_stats([], period=Period.ALL, now=NOW)
        assert stats.total_seconds == 0
        assert stats.average_seconds == 0
        payload = stats.to_dict()
        assert payload["total_display"] == "0s"
        assert payload["period_label"] == "all time"


class TestAggregateByGame:
    def test_groups_by_process(self, make_session) -> None:
        sessions = [
            make_session(-120, 30, "Valorant"),
            make_session(-60, 45, "Valorant"),
            make_session(-30, 10, "Dota 2"),
        ]
        rows = aggregate_by_game(sessions)
        assert rows == [("Valorant", 75 * 60, 2), ("Dota 2", 600, 1)]


class TestNormalization:
    def test_label_from_process(self) -> None:
        assert game_label_from_process("rocket_league.exe") == "Rocket League"
        assert game_label_from_process("hollow-knight") == "Hollow Knight"
        assert game_label_from_process("") is None

    def test_display_name_prefers_game_name(self) -> None:
        assert display_game_name("  Dota   2 ", "dota2.exe") == "Dota 2"
        assert display_game_name("", "dota2.exe") == "Dota2"
        assert display_game_name(None, None) == "Unknown"


class TestSummaryPrinter:
    def test_daily_summary(self, fake_service, make_session, capsys) -> None:
        fake_service.recent_sessions = [
            make_session(-120, 60, "Valorant"),
            make_session(-90, 60, "Dota 2"),
        ]
        SummaryPrinter(fake_service).print_daily_summary(now=NOW)
        out = capsys.readouterr().out
        assert "Summary for 2024-06-12" in out
        assert "Budget time: 1h 30m" in out
        assert "Total time:  2h" in out
        assert "(25%, safe)" in out
        assert "Valorant" in out

    def test_daily_summary_without_sessions(self, fake_service, capsys) -> None:
        SummaryPrinter(fake_service).print_daily_summary(now=NOW)
        assert "No sessions recorded today." in capsys.readouterr().out

    def test_history(self, fake_service, make_session, capsys) -> None:
        fake_service.recent_sessions = [make_session(-60, 30, "Valorant", social=True)]
        SummaryPrinter(fake_service).print_history(
            period=Period.WEEK,
            session_filter=SessionFilter.ALL,
            search="",
            mode=AccountingMode.TOTAL,
            now=NOW,
        )
        out = capsys.readouterr().out
        assert "Total playtime this week: 30m" in out
        assert "[social]" in out
