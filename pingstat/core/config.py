from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

APP_NAME: str = "pingstat"
APP_VERSION: str = "1.4.0"

DATA_DIR: Path = Path.home() / ".pingstat"
CONFIG_FILENAME: str = "pingstat.conf"
LOG_FILENAME: str = "pingstat.log"
DB_DIRNAME: str = "db"

PROBE_COUNT: int = 10
PROBE_TIMEOUT_SECONDS: int = 3
REACHABILITY_PROBE_COUNT: int = 1

ANCHOR_HOSTS: tuple[str, ...] = ("8.8.8.8", "1.1.1.1", "9.9.9.9")

DAILY_DEFAULT_LIMIT: int = 20
MONTHLY_DEFAULT_LIMIT: int = 12

API_HOST: str = "127.0.0.1"
API_PORT: int = 8765
SCHEDULER_INTERVAL_SECONDS: int = 300

_ANCHOR_SPLIT_RE = re.compile(r"[\s,]+")


def _env_positive_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, raw)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive", name, raw)
        return default
    return value


@dataclass(frozen=True, slots=True)
class Settings:
    data_dir: Path
    config_path: Path
    probe_count: int = PROBE_COUNT
    probe_timeout_s: int = PROBE_TIMEOUT_SECONDS
    anchors: tuple[str, ...] = ANCHOR_HOSTS

    @property
    def db_dir(self) -> Path:
        return self.data_dir / DB_DIRNAME

    @property
    def log_path(self) -> Path:
        return self.data_dir / LOG_FILENAME

    @classmethod
    def from_env(cls, data_dir: str | Path | None = None) -> "Settings":
        """Resolve settings from the environment; an explicit data_dir wins over PINGSTAT_HOME."""
        if data_dir is None:
            home = os.environ.get("PINGSTAT_HOME")
            data_dir = Path(home).expanduser() if home else DATA_DIR
        data_dir = Path(data_dir)

        config_raw = os.environ.get("PINGSTAT_CONFIG")
        config_path = Path(config_raw).expanduser() if config_raw else data_dir / CONFIG_FILENAME

        anchors_raw = os.environ.get("PINGSTAT_ANCHORS", "")
        anchors = tuple(a for a in _ANCHOR_SPLIT_RE.split(anchors_raw.strip()) if a)

        return cls(
            data_dir=data_dir,
            config_path=config_path,
            probe_count=_env_positive_int("PINGSTAT_PROBE_COUNT", PROBE_COUNT),
            probe_timeout_s=_env_positive_int("PINGSTAT_PROBE_TIMEOUT", PROBE_TIMEOUT_SECONDS),
            anchors=anchors or ANCHOR_HOSTS,
        )
