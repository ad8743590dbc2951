from __future__ import annotations

import logging
import re
import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Iterator

from pingstat.core.models import InvalidHostError

logger = logging.getLogger(__name__)

MAX_HOST_LENGTH: int = 253
_HOST_CHARS_RE = re.compile(r"[A-Za-z0-9.:-]+")


def storage_key(host: str) -> str:
    """Map a host string to the file stem of its store.

    Only hostname/IP characters are accepted, so nothing a user types can
    escape the data directory. ``:`` becomes ``_``, which is never valid in
    a host, so distinct hosts never share a key.
    """
    if not host:
        raise InvalidHostError("host must not be empty")
    if len(host) > MAX_HOST_LENGTH:
        raise InvalidHostError(f"host is longer than {MAX_HOST_LENGTH} characters")
    if not _HOST_CHARS_RE.fullmatch(host):
        raise InvalidHostError(f"host {host!r} contains characters outside [A-Za-z0-9.:-]")
    if host.startswith((".", "-")):
        raise InvalidHostError(f"host {host!r} must not start with '.' or '-'")
    if ".." in host:
        raise InvalidHostError(f"host {host!r} must not contain '..'")
    return host.replace(":", "_")


def db_path(host: str, db_dir: Path) -> Path:
    return db_dir / f"{storage_key(host)}.db"


def get_connection(host: str, db_dir: Path) -> sqlite3.Connection:
    path = db_path(host, db_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path), timeout=10)
    conn.row_factory = sqlite3.Row
    try:
        ensure_schema(conn)
    except sqlite3.Error:
        conn.close()
        raise
    logger.debug("Opened store %s", path)
    return conn


@contextmanager
def open_store(host: str, db_dir: Path) -> Iterator[sqlite3.Connection]:
    with closing(get_connection(host, db_dir)) as conn:
        yield conn


def ensure_schema(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS samples (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            ts TEXT NOT NULL,
            min_ms REAL,
            avg_ms REAL,
            max_ms REAL,
            mdev_ms REAL,
            loss_percent REAL NOT NULL DEFAULT 100
        )
        """
    )

    conn.execute("CREATE INDEX IF NOT EXISTS idx_samples_ts ON samples(ts)")
    conn.commit()
