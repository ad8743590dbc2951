from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from datetime import datetime

from pingstat.collectors.ping import Prober
from pingstat.core.config import SCHEDULER_INTERVAL_SECONDS, Settings
from pingstat.core.models import BatchReport
from pingstat.services.recorder import probe_and_record
from pingstat.storage.registry_file import load_hosts

logger = logging.getLogger(__name__)


class ProbeScheduler:
    """Runs the sequential probe batch every ``interval_seconds`` while the API is up."""

    def __init__(
        self,
        settings: Settings,
        prober: Prober,
        interval_seconds: int = SCHEDULER_INTERVAL_SECONDS,
    ) -> None:
        self._settings = settings
        self._prober = prober
        self._interval_seconds = interval_seconds
        self._task: asyncio.Task[None] | None = None
        self.last_run: datetime | None = None
        self.last_report: BatchReport | None = None

    @property
    def interval_seconds(self) -> int:
        return self._interval_seconds

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._run(), name="probe-scheduler")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def run_once(self) -> BatchReport:
        # Registry is re-read each cycle so CLI edits made while serving take effect.
        hosts = load_hosts(self._settings.config_path)
        report = await asyncio.to_thread(
            probe_and_record, hosts, self._settings, prober=self._prober
        )
        self.last_run = datetime.now()
        self.last_report = report
        if not report.connectivity_ok:
            logger.warning("Scheduled probe skipped: no connectivity")
        else:
            logger.info(
                "Scheduled probe recorded=%s failed=%s hosts=%s",
                report.recorded,
                report.failed,
                len(report.hosts),
            )
        return report

    async def _run(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("Scheduled probe cycle failed")
            await asyncio.sleep(float(self._interval_seconds))
