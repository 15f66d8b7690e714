"""Gaming minutes earned by completing learning activities."""

from __future__ import annotations

DEFAULT_DIVISOR = 5

# Learning minutes needed per earned gaming minute.
_DIVISORS: dict[str, int] = {
    "coding": 4,
    "course": 4,
    "exercise": 3,
    "reading": 6,
}


def earned_minutes(activity_type: str, duration_minutes: int) -> int:
    """Preview the gaming minutes an activity earns.

    The service applies the authoritative reward when the activity is
    submitted; this mirrors its rates so the UI can show the result first.
    """
    divisor = _DIVISORS.get(activity_type.strip().lower(), DEFAULT_DIVISOR)
    return max(int(duration_minutes), 0) // divisor


def known_activity_types() -> list[str]:
    return sorted(_DIVISORS)
