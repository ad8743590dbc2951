from __future__ import annotations

import sqlite3
from datetime import date, datetime
from typing import Any

from pingstat.core.models import Bucket, Granularity, Measurement

TS_FORMAT: str = "%Y-%m-%d %H:%M:%S"
WEEKDAYS: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

_BUCKET_KEY_LENGTH: dict[Granularity, int] = {
    Granularity.DAY: len("YYYY-MM-DD"),
    Granularity.MONTH: len("YYYY-MM"),
}


def now_ts() -> str:
    return datetime.now().strftime(TS_FORMAT)


def insert_sample(
    conn: sqlite3.Connection, measurement: Measurement, ts: str | None = None
) -> int:
    cur = conn.execute(
        """
        INSERT INTO samples (ts, min_ms, avg_ms, max_ms, mdev_ms, loss_percent)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            ts or now_ts(),
            measurement.min,
            measurement.avg,
            measurement.max,
            measurement.mdev,
            float(measurement.loss),
        ),
    )
    conn.commit()
    return int(cur.lastrowid)


def weekday_name(day: str) -> str | None:
    try:
        return WEEKDAYS[date.fromisoformat(day).weekday()]
    except ValueError:
        return None


def query_buckets(
    conn: sqlite3.Connection, granularity: Granularity, limit: int
) -> list[Bucket]:
    key_len = _BUCKET_KEY_LENGTH[Granularity(granularity)]
    rows = conn.execute(
        """
        SELECT
            substr(ts, 1, ?) AS bucket,
            min(min_ms) AS abs_min,
            avg(min_ms) AS avg_min,
            avg(avg_ms) AS avg_avg,
            avg(max_ms) AS avg_max,
            max(max_ms) AS abs_max,
            avg(loss_percent) AS avg_loss,
            count(*) AS num_pings
        FROM samples
        GROUP BY bucket
        ORDER BY bucket DESC
        LIMIT ?
        """,
        (key_len, int(limit)),
    ).fetchall()

    buckets: list[Bucket] = []
    for r in rows:
        d = dict(r)
        if granularity == Granularity.DAY:
            d["weekday"] = weekday_name(d["bucket"])
        buckets.append(Bucket(**d))
    return buckets


def get_latest_samples(conn: sqlite3.Connection, limit: int) -> list[dict[str, Any]]:
    rows = conn.execute(
        "SELECT * FROM samples ORDER BY id DESC LIMIT ?",
        (int(limit),),
    ).fetchall()
    return [dict(r) for r in rows]


def count_samples(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT count(*) AS n FROM samples").fetchone()
    return int(row["n"])
