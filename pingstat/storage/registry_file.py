from __future__ import annotations

import logging
import os
import re
import shlex
import tempfile
from contextlib import suppress
from pathlib import Path

from pingstat.core.models import InvalidHostError
from pingstat.storage.db import storage_key

logger = logging.getLogger(__name__)

RECORD_KEY: str = "SERVERS"
_RECORD_RE = re.compile(rf"^\s*(?:export\s+)?{RECORD_KEY}\s*=(.*)$")


class RegistryFormatError(ValueError):
    pass


def parse_record(text: str) -> list[str]:
    """Parse the SERVERS="host host ..." record out of a config file body.

    The value is read as data only. Blank lines and `#` comments are skipped;
    a body without the record, or with broken quoting, is a format error.
    """
    value: str | None = None
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        match = _RECORD_RE.match(line)
        if match:
            value = match.group(1)

    if value is None:
        raise RegistryFormatError(f"no {RECORD_KEY}= record")

    try:
        words = shlex.split(value, comments=True)
    except ValueError as exc:
        raise RegistryFormatError(str(exc)) from exc

    hosts: list[str] = []
    for word in words:
        for host in word.split():
            if host in hosts:
                logger.warning("Dropping duplicate registry entry %s", host)
                continue
            hosts.append(host)
    return hosts


def format_record(hosts: list[str]) -> str:
    return f'{RECORD_KEY}="{" ".join(hosts)}"\n'


def load_hosts(path: Path) -> list[str]:
    if not path.exists():
        logger.debug("Registry file %s does not exist; starting empty", path)
        return []
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.warning("Cannot read registry file %s; treating registry as empty", path, exc_info=True)
        return []
    if not text.strip():
        return []
    try:
        entries = parse_record(text)
    except RegistryFormatError as exc:
        logger.warning("Registry file %s is unparsable (%s); treating registry as empty", path, exc)
        return []

    hosts: list[str] = []
    for host in entries:
        try:
            storage_key(host)
        except InvalidHostError as exc:
            logger.warning("Skipping invalid registry entry in %s: %s", path, exc)
            continue
        hosts.append(host)
    return hosts


def save_hosts(path: Path, hosts: list[str]) -> None:
    """Rewrite the whole record atomically: temp file in the same directory, then replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(format_record(hosts))
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with suppress(OSError):
            os.unlink(tmp_name)
        raise
    logger.debug("Registry saved to %s (%d hosts)", path, len(hosts))
