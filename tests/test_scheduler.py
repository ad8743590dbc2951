from __future__ import annotations

import asyncio

from pingstat.services import recorder
from pingstat.services.scheduler import ProbeScheduler
from pingstat.storage.db import open_store
from pingstat.storage.registry_file import save_hosts
from pingstat.storage.samples import count_samples


def test_run_once_rereads_registry(settings, online_prober, interfaces_up) -> None:
    scheduler = ProbeScheduler(settings, online_prober, interval_seconds=60)
    save_hosts(settings.config_path, ["kernel.org"])

    first = asyncio.run(scheduler.run_once())
    save_hosts(settings.config_path, ["kernel.org", "example.net"])
    second = asyncio.run(scheduler.run_once())

    assert [h.host for h in first.hosts] == ["kernel.org"]
    assert [h.host for h in second.hosts] == ["kernel.org", "example.net"]
    assert scheduler.last_report is second
    with open_store("kernel.org", settings.db_dir) as conn:
        assert count_samples(conn) == 2


def test_start_and_stop(settings, online_prober, monkeypatch) -> None:
    monkeypatch.setattr(recorder, "any_interface_up", lambda: True)
    save_hosts(settings.config_path, ["kernel.org"])

    async def scenario() -> None:
        scheduler = ProbeScheduler(settings, online_prober, interval_seconds=3600)
        scheduler.start()
        for _ in range(200):
            if scheduler.last_report is not None:
                break
            await asyncio.sleep(0.01)
        await scheduler.stop()
        assert scheduler.last_report is not None

    asyncio.run(scenario())
