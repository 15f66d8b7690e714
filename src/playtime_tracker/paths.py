"""Locations of files the tracker writes locally.

The game service owns every session and budget record, so the tracker only
keeps log files of its own.
"""

from __future__ import annotations

from pathlib import Path

from platformdirs import PlatformDirs

APP_NAME = "PlaytimeTracker"


def get_log_dir() -> Path:
    dirs = PlatformDirs(appname=APP_NAME, appauthor=False)
    path = Path(dirs.user_log_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_log_path(component: str = "monitor") -> Path:
    """Log file for one command, e.g. ``monitor.log`` or ``web.log``."""
    return get_log_dir() / f"{component}.log"
