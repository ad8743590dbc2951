from __future__ import annotations

import logging
import sqlite3
from typing import Callable, Iterable

from pingstat.collectors.ping import Prober, any_interface_up, check_connectivity
from pingstat.core.config import Settings
from pingstat.core.models import BatchReport, HostReport, InvalidHostError
from pingstat.storage.db import open_store, storage_key
from pingstat.storage.samples import insert_sample

logger = logging.getLogger(__name__)


def record_host(host: str, settings: Settings, *, prober: Prober) -> HostReport:
    report = HostReport(host=host)
    try:
        storage_key(host)
    except InvalidHostError as exc:
        logger.warning("Not probing invalid host %r: %s", host, exc)
        report.error = str(exc)
        return report

    report.measurement = prober(host, settings.probe_count)
    try:
        with open_store(host, settings.db_dir) as conn:
            report.sample_id = insert_sample(conn, report.measurement)
    except (sqlite3.Error, OSError) as exc:
        logger.exception("Failed to record sample for %s", host)
        report.error = str(exc)
    return report


def probe_and_record(
    hosts: Iterable[str],
    settings: Settings,
    *,
    prober: Prober,
    interfaces_up: Callable[[], bool] | None = None,
) -> BatchReport:
    """Probe hosts one at a time, in order, and append one sample per host.

    Nothing is probed or written unless at least one anchor answers first.
    """
    hosts = list(hosts)
    report = BatchReport()
    if not hosts:
        return report

    if not check_connectivity(
        settings.anchors, prober=prober, interfaces_up=interfaces_up or any_interface_up
    ):
        logger.warning("No internet connectivity; skipping probe of %d host(s)", len(hosts))
        report.connectivity_ok = False
        return report

    for host in hosts:
        host_report = record_host(host, settings, prober=prober)
        report.hosts.append(host_report)
        m = host_report.measurement
        logger.info(
            "Probed %s loss=%s avg=%s recorded=%s",
            host,
            m.loss if m else None,
            m.avg if m else None,
            host_report.recorded,
        )
    return report
