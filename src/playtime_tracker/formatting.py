"""Human-readable rendering of durations."""

from __future__ import annotations


def format_duration(seconds: float) -> str:
    """Render seconds compactly, e.g. ``"30s"``, ``"1m 30s"`` or ``"1h 1m"``.

    Only the two most significant units are shown, and a trailing unit is
    dropped when it is zero. Callers clamp negative values before calling.
    """
    total_seconds = int(seconds)
    if total_seconds < 60:
        return f"{total_seconds}s"

    minutes, secs = divmod(total_seconds, 60)
    if minutes < 60:
        return f"{minutes}m {secs}s" if secs else f"{minutes}m"

    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m" if minutes else f"{hours}h"


def format_minutes(minutes: int) -> str:
    """Render a budget figure given in minutes, e.g. ``"1h 5m"`` or ``"45m"``."""
    sign = "-" if minutes < 0 else ""
    hours, mins = divmod(abs(int(minutes)), 60)
    if hours:
        return f"{sign}{hours}h {mins}m"
    return f"{sign}{mins}m"
