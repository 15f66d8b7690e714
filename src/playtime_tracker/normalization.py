"""Utilities to normalize game and process names."""

from __future__ import annotations

import re
from typing import Optional

_EXECUTABLE_SUFFIXES: tuple[str, ...] = (".exe", ".app", ".x86_64")

_SEPARATOR_PATTERN = re.compile(r"[_\-]+")


def normalize_process_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    lowered = value.strip().lower()
    return lowered or None


def game_label_from_process(process_name: Optional[str]) -> Optional[str]:
    """Turn ``"rocket_league.exe"`` into ``"Rocket League"``."""
    if not process_name:
        return None
    name = process_name.strip()
    for suffix in _EXECUTABLE_SUFFIXES:
        if name.lower().endswith(suffix):
            name = name[: -len(suffix)]
            break
    words = _SEPARATOR_PATTERN.sub(" ", name).split()
    label = " ".join(word[:1].upper() + word[1:] for word in words)
    return label or None


def display_game_name(game_name: Optional[str], process_name: Optional[str]) -> str:
    """Prefer the service's display name, falling back to the process name."""
    if game_name and game_name.strip():
        return re.sub(r"\s{2,}", " ", game_name).strip()
    return game_label_from_process(process_name) or "Unknown"
