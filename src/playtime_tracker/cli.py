"""Command-line interface for the playtime tracker."""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

import typer

from .accounting import AccountingMode
from .config import DEFAULT_SERVICE_URL, MonitorSettings
from .formatting import format_minutes
from .models import LearningActivity
from .paths import get_log_path
from .reporting import Period, SessionFilter, SummaryPrinter
from .rewards import earned_minutes
from .server_runner import run_dashboard
from .service import GameServiceError, HttpGameService

app = typer.Typer(help="Track gaming time against a daily budget.")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

T = TypeVar("T")


def _service_url_option() -> Any:
    return typer.Option(
        DEFAULT_SERVICE_URL,
        "--service-url",
        envvar="PLAYTIME_SERVICE_URL",
        help="Base URL of the game monitoring service.",
    )


@app.callback(no_args_is_help=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs."),
    log_file: bool = typer.Option(
        False, "--log-file", help="Also write logs to the user log directory."
    ),
) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        path = get_log_path(ctx.invoked_subcommand or "cli")
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
    )


@app.command()
def monitor(
    service_url: str = _service_url_option(),
    poll_seconds: float = typer.Option(
        1.0,
        "--interval",
        min=0.2,
        help="Polling interval in seconds.",
    ),
    auto_close_seconds: float = typer.Option(
        5.0,
        "--auto-close-delay",
        min=0.0,
        help="Seconds to wait before closing games once the budget is exceeded.",
    ),
    cancel_on_recovery: bool = typer.Option(
        False,
        "--cancel-close-on-recovery/--always-close",
        help="Cancel a pending game close if the budget recovers first.",
    ),
) -> None:
    """Poll the service and raise budget alerts until interrupted."""
    from .monitor import BudgetMonitor

    settings = MonitorSettings.from_intervals(
        poll_seconds=poll_seconds,
        service_url=service_url,
        auto_close_seconds=auto_close_seconds,
        cancel_close_on_recovery=cancel_on_recovery,
    )
    service = HttpGameService(settings.service_url, timeout=settings.request_timeout)
    BudgetMonitor(service, settings).run_forever()


@app.command()
def summary(service_url: str = _service_url_option()) -> None:
    """Print today's budget and playtime summary."""
    printer = SummaryPrinter(HttpGameService(service_url))
    _run_or_exit(printer.print_daily_summary)


@app.command()
def history(
    service_url: str = _service_url_option(),
    period: Period = typer.Option(Period.WEEK, "--range", help="Date range to include."),
    session_filter: SessionFilter = typer.Option(
        SessionFilter.ALL, "--filter", help="Session type to include."
    ),
    search: str = typer.Option("", "--search", help="Only games whose name contains this."),
    total: bool = typer.Option(
        False,
        "--total/--budget",
        help="Sum every session (total playtime) instead of merging overlaps.",
    ),
) -> None:
    """Print recorded sessions grouped by day."""
    printer = SummaryPrinter(HttpGameService(service_url))
    mode = AccountingMode.TOTAL if total else AccountingMode.BUDGET
    _run_or_exit(
        lambda: printer.print_history(
            period=period, session_filter=session_filter, search=search, mode=mode
        )
    )


@app.command()
def reward(
    activity_type: str = typer.Argument(..., help="coding, course, exercise, reading, ..."),
    minutes: int = typer.Argument(..., min=0, help="Minutes spent on the activity."),
) -> None:
    """Preview the gaming minutes a learning activity would earn."""
    earned = earned_minutes(activity_type, minutes)
    typer.echo(f"{minutes} min of {activity_type} earns {format_minutes(earned)} of gaming time.")


@app.command()
def learn(
    activity_type: str = typer.Argument(..., help="coding, course, exercise, reading, ..."),
    minutes: int = typer.Argument(..., min=1, help="Minutes spent on the activity."),
    description: str = typer.Option("", "--description", "-d", help="What you worked on."),
    service_url: str = _service_url_option(),
) -> None:
    """Submit a completed learning activity to earn gaming time."""
    activity = LearningActivity.create(activity_type, description, minutes)
    service = HttpGameService(service_url)
    _run_or_exit(lambda: service.add_learning_activity(activity))
    earned = format_minutes(activity.earned_gaming_minutes)
    typer.echo(f"Logged {minutes} min of {activity_type}; earned about {earned}.")


@app.command()
def budget(
    minutes: int = typer.Argument(..., min=1, help="Minutes to add or remove."),
    remove: bool = typer.Option(False, "--remove", help="Remove minutes instead of adding."),
    service_url: str = _service_url_option(),
) -> None:
    """Adjust today's budget by the given number of minutes."""
    service = HttpGameService(service_url)
    if remove:
        _run_or_exit(lambda: service.remove_budget_minutes(minutes))
        typer.echo(f"Removed {minutes} minutes from today's budget.")
    else:
        _run_or_exit(lambda: service.add_budget_minutes(minutes))
        typer.echo(f"Added {minutes} minutes to today's budget.")


@app.command("close-games")
def close_games(service_url: str = _service_url_option()) -> None:
    """Ask the service to close every running game."""
    closed = _run_or_exit(HttpGameService(service_url).close_all_games)
    if closed:
        typer.echo(f"Closed games: {', '.join(closed)}")
    else:
        typer.echo("No games were running to close.")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the dashboard."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the dashboard."
    ),
    service_url: str = _service_url_option(),
    poll_seconds: float = typer.Option(
        1.0,
        "--interval",
        min=0.2,
        help="Polling interval in seconds.",
    ),
    auto_close_seconds: float = typer.Option(
        5.0,
        "--auto-close-delay",
        min=0.0,
        help="Seconds to wait before closing games once the budget is exceeded.",
    ),
    cancel_on_recovery: bool = typer.Option(
        False,
        "--cancel-close-on-recovery/--always-close",
        help="Cancel a pending game close if the budget recovers first.",
    ),
) -> None:
    """Start the local dashboard API with the background budget monitor."""
    settings = MonitorSettings.from_intervals(
        poll_seconds=poll_seconds,
        service_url=service_url,
        auto_close_seconds=auto_close_seconds,
        cancel_close_on_recovery=cancel_on_recovery,
    )
    run_dashboard(host=host, port=port, settings=settings)


def _run_or_exit(action: Callable[[], T]) -> T:
    try:
        return action()
    except GameServiceError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


if __name__ == "__main__":  # pragma: no cover
    app()
