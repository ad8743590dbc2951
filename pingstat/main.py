from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from pingstat.api.routes import router as api_router
from pingstat.collectors.ping import Prober, make_prober
from pingstat.core.config import APP_NAME, APP_VERSION, Settings
from pingstat.services.scheduler import ProbeScheduler

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings,
    *,
    probe_interval_seconds: int = 0,
    prober: Prober | None = None,
) -> FastAPI:
    """Build the read-only stats API; a positive interval also runs the probe scheduler."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        scheduler: ProbeScheduler | None = None
        if probe_interval_seconds > 0:
            scheduler = ProbeScheduler(
                settings,
                prober or make_prober(settings.probe_timeout_s),
                interval_seconds=probe_interval_seconds,
            )
            scheduler.start()
        app.state.scheduler = scheduler
        logger.info("%s API started (data dir %s)", APP_NAME, settings.data_dir)
        try:
            yield
        finally:
            if scheduler is not None:
                await scheduler.stop()
            logger.info("%s API stopped", APP_NAME)

    app = FastAPI(title=APP_NAME, version=APP_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.scheduler = None
    app.include_router(api_router)
    return app
