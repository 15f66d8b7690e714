"""Launch the local dashboard API under uvicorn."""

from __future__ import annotations

import logging
from typing import Optional

import uvicorn

from .config import MonitorSettings
from .webapp import create_app

logger = logging.getLogger(__name__)


def run_dashboard(
    *,
    host: str = "127.0.0.1",
    port: int = 8765,
    settings: Optional[MonitorSettings] = None,
    log_level: str = "info",
) -> None:
    """Serve the dashboard API; the budget monitor polls in a background thread."""
    settings = settings or MonitorSettings()
    app = create_app(settings=settings)

    logger.info(
        "Dashboard API on http://%s:%d (service %s, docs at /docs)",
        host,
        port,
        settings.service_url,
    )
    logging.getLogger("uvicorn.error").setLevel(log_level.upper())
    uvicorn.run(app, host=host, port=port, log_level=log_level)
