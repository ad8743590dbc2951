from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from pingstat.collectors.ping import Prober, is_reachable
from pingstat.core.config import REACHABILITY_PROBE_COUNT
from pingstat.core.models import (
    AddOutcome,
    AddResult,
    RemoveResult,
    ResolveOutcome,
    ResolveResult,
)
from pingstat.services.confirm import Ask, Say, run_register_prompt, run_unreachable_flow
from pingstat.storage.db import storage_key
from pingstat.storage.registry_file import load_hosts, save_hosts

logger = logging.getLogger(__name__)


@dataclass
class Registry:
    """Ordered set of registered hosts backed by the SERVERS record.

    Every mutation rewrites the whole record before returning.
    """

    path: Path
    hosts: list[str] = field(default_factory=list)

    @classmethod
    def load(cls, path: Path) -> "Registry":
        return cls(path=path, hosts=load_hosts(path))

    def list(self) -> list[str]:
        return list(self.hosts)

    def __contains__(self, host: object) -> bool:
        return host in self.hosts

    def _commit(self, hosts: list[str]) -> None:
        save_hosts(self.path, hosts)
        self.hosts = hosts

    def add(self, host: str, *, prober: Prober, ask: Ask, say: Say = print) -> AddOutcome:
        storage_key(host)
        if host in self.hosts:
            return AddOutcome(AddResult.ALREADY_PRESENT, host)

        final = host
        if not is_reachable(prober(host, REACHABILITY_PROBE_COUNT)):
            logger.info("%s failed its reachability probe", host)
            chosen = run_unreachable_flow(host, prober=prober, ask=ask, say=say)
            if chosen is None:
                return AddOutcome(AddResult.DECLINED, host)
            final = chosen
            if final in self.hosts:
                return AddOutcome(AddResult.ALREADY_PRESENT, final)

        self._commit([*self.hosts, final])
        logger.info("Registered %s", final)
        return AddOutcome(AddResult.ADDED, final)

    def remove(self, host: str) -> RemoveResult:
        if host not in self.hosts:
            return RemoveResult.NOT_FOUND
        remaining = list(self.hosts)
        remaining.remove(host)
        self._commit(remaining)
        logger.info("Removed %s from registry", host)
        return RemoveResult.REMOVED

    def resolve(self, host: str, *, prober: Prober, ask: Ask, say: Say = print) -> ResolveOutcome:
        """Make sure a host named on the command line is registered, asking first if it is not."""
        storage_key(host)
        if host in self.hosts:
            return ResolveOutcome(ResolveResult.REGISTERED, host)
        if not run_register_prompt(host, ask=ask):
            return ResolveOutcome(ResolveResult.NOT_REGISTERED, host)

        outcome = self.add(host, prober=prober, ask=ask, say=say)
        if outcome.result is AddResult.DECLINED:
            return ResolveOutcome(ResolveResult.NOT_REGISTERED, host)
        return ResolveOutcome(ResolveResult.REGISTERED, outcome.host)
