from __future__ import annotations

from pingstat.core.config import DAILY_DEFAULT_LIMIT, MONTHLY_DEFAULT_LIMIT, Settings
from pingstat.core.models import Bucket, Granularity
from pingstat.storage.db import open_store
from pingstat.storage.samples import query_buckets

MISSING: str = "-"

_HEADERS: dict[Granularity, tuple[str, ...]] = {
    Granularity.DAY: ("Date", "Day", "Min", "Avg Min", "Avg", "Avg Max", "Max", "Loss", "Pings"),
    Granularity.MONTH: ("Month", "Min", "Avg Min", "Avg", "Avg Max", "Max", "Loss", "Pings"),
}


def bucket_stats(
    host: str, settings: Settings, granularity: Granularity, limit: int
) -> list[Bucket]:
    if limit < 1:
        raise ValueError("limit must be at least 1")
    with open_store(host, settings.db_dir) as conn:
        return query_buckets(conn, granularity, limit)


def daily_stats(host: str, settings: Settings, limit: int = DAILY_DEFAULT_LIMIT) -> list[Bucket]:
    return bucket_stats(host, settings, Granularity.DAY, limit)


def monthly_stats(host: str, settings: Settings, limit: int = MONTHLY_DEFAULT_LIMIT) -> list[Bucket]:
    return bucket_stats(host, settings, Granularity.MONTH, limit)


def format_rtt(value: float | None) -> str:
    return MISSING if value is None else f"{value:.3f}"


def format_loss(value: float | None) -> str:
    return MISSING if value is None else f"{value:.1f}%"


def bucket_row(bucket: Bucket, granularity: Granularity) -> list[str]:
    row = [bucket.bucket]
    if granularity == Granularity.DAY:
        row.append(bucket.weekday or MISSING)
    row.extend(
        [
            format_rtt(bucket.abs_min),
            format_rtt(bucket.avg_min),
            format_rtt(bucket.avg_avg),
            format_rtt(bucket.avg_max),
            format_rtt(bucket.abs_max),
            format_loss(bucket.avg_loss),
            str(bucket.num_pings),
        ]
    )
    return row


def render_table(host: str, buckets: list[Bucket], granularity: Granularity) -> str:
    granularity = Granularity(granularity)
    title = "Daily" if granularity == Granularity.DAY else "Monthly"
    lines = [f"{title} statistics for {host}"]
    if not buckets:
        lines.append("  no samples recorded yet")
        return "\n".join(lines)

    rows = [list(_HEADERS[granularity])] + [bucket_row(b, granularity) for b in buckets]
    widths = [max(len(r[i]) for r in rows) for i in range(len(rows[0]))]
    for r in rows:
        lines.append("  ".join(cell.ljust(w) for cell, w in zip(r, widths)).rstrip())
    return "\n".join(lines)
