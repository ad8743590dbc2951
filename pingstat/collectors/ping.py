from __future__ import annotations

import logging
import re
import subprocess
import sys
from typing import Callable, Iterable

import psutil

from pingstat.core.config import PROBE_TIMEOUT_SECONDS, REACHABILITY_PROBE_COUNT
from pingstat.core.models import Measurement

logger = logging.getLogger(__name__)

_SUMMARY_RE = re.compile(
    r"(\d+)\s+packets?\s+transmitted,\s+(\d+)\s+(?:packets\s+)?received",
    re.IGNORECASE,
)
_WIN_SUMMARY_RE = re.compile(r"Sent\s*=\s*(\d+),\s*Received\s*=\s*(\d+)", re.IGNORECASE)
_RTT_RE = re.compile(
    r"(?:rtt|round-trip)\s+min/avg/max/(?:mdev|stddev)\s*=\s*"
    r"([\d.]+)/([\d.]+)/([\d.]+)/([\d.]+)\s*ms",
    re.IGNORECASE,
)
_WIN_RTT_RE = re.compile(
    r"Minimum\s*=\s*(\d+)ms,\s*Maximum\s*=\s*(\d+)ms,\s*Average\s*=\s*(\d+)ms",
    re.IGNORECASE,
)

Prober = Callable[[str, int], Measurement]


def build_ping_command(
    host: str, count: int, timeout_s: int = PROBE_TIMEOUT_SECONDS, platform: str | None = None
) -> list[str]:
    platform = platform or sys.platform
    if platform.startswith("win"):
        return ["ping", "-n", str(count), "-w", str(timeout_s * 1000), host]
    if platform == "darwin":
        return ["ping", "-c", str(count), "-W", str(timeout_s * 1000), host]
    return ["ping", "-c", str(count), "-W", str(timeout_s), host]


def _parse_counts(text: str) -> tuple[int, int] | None:
    match = _SUMMARY_RE.search(text) or _WIN_SUMMARY_RE.search(text)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def parse_ping_output(text: str) -> Measurement:
    """Turn raw ping output into a Measurement.

    Unparsable output and a zero transmit count both yield the degraded
    100% loss result with null round-trip fields.
    """
    counts = _parse_counts(text)
    if counts is None:
        logger.debug("No ping summary line found")
        return Measurement.degraded()

    transmitted, received = counts
    if transmitted <= 0:
        logger.debug("Ping reported zero packets transmitted")
        return Measurement.degraded()

    loss = max(0.0, (1 - received / transmitted) * 100)

    rtt = _RTT_RE.search(text)
    if rtt is None:
        win = _WIN_RTT_RE.search(text)
        if win is None:
            return Measurement(loss=loss, transmitted=transmitted, received=received)
        # Windows prints whole milliseconds and no deviation.
        win_min, win_max, win_avg = (float(v) for v in win.groups())
        return Measurement(
            loss=loss,
            min=win_min,
            avg=win_avg,
            max=win_max,
            transmitted=transmitted,
            received=received,
        )

    try:
        rtt_min, rtt_avg, rtt_max, rtt_mdev = (float(v) for v in rtt.groups())
    except ValueError:
        return Measurement(loss=loss, transmitted=transmitted, received=received)

    return Measurement(
        loss=loss,
        min=rtt_min,
        avg=rtt_avg,
        max=rtt_max,
        mdev=rtt_mdev,
        transmitted=transmitted,
        received=received,
    )


def probe(
    host: str,
    count: int,
    *,
    timeout_s: int = PROBE_TIMEOUT_SECONDS,
    runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
) -> Measurement:
    cmd = build_ping_command(host, count, timeout_s)
    try:
        proc = runner(
            cmd,
            capture_output=True,
            text=True,
            check=False,
            timeout=count * timeout_s + 5,
        )
    except FileNotFoundError:
        logger.warning("ping binary not found; recording %s as unreachable", host)
        return Measurement.degraded()
    except subprocess.TimeoutExpired:
        logger.warning("ping %s timed out", host)
        return Measurement.degraded()
    except OSError:
        logger.exception("ping %s failed to start", host)
        return Measurement.degraded()

    output = f"{proc.stdout or ''}\n{proc.stderr or ''}"
    measurement = parse_ping_output(output)
    logger.debug(
        "ping %s count=%s rc=%s loss=%s avg=%s",
        host,
        count,
        proc.returncode,
        measurement.loss,
        measurement.avg,
    )
    return measurement


def is_reachable(measurement: Measurement) -> bool:
    return measurement.loss < 100


def make_prober(timeout_s: int = PROBE_TIMEOUT_SECONDS) -> Prober:
    def _prober(host: str, count: int) -> Measurement:
        return probe(host, count, timeout_s=timeout_s)

    return _prober


def any_interface_up() -> bool:
    try:
        stats = psutil.net_if_stats()
    except (OSError, RuntimeError):
        logger.debug("psutil could not read interface stats; assuming up", exc_info=True)
        return True
    for name, st in stats.items():
        if not st.isup:
            continue
        if name.startswith("lo") or "loopback" in name.lower():
            continue
        return True
    return False


def check_connectivity(
    anchors: Iterable[str],
    *,
    prober: Prober,
    interfaces_up: Callable[[], bool] = any_interface_up,
) -> bool:
    if not interfaces_up():
        logger.warning("No network interface is up")
        return False
    for anchor in anchors:
        if is_reachable(prober(anchor, REACHABILITY_PROBE_COUNT)):
            logger.debug("Connectivity confirmed via %s", anchor)
            return True
        logger.info("Anchor %s did not answer", anchor)
    return False
