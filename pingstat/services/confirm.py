"""Interactive confirmation prompts as small state machines.

The machines only hold state and compute transitions; reading answers and
probing addresses is done by the ``run_*`` drivers through injected callables,
so tests can script both.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from pingstat.collectors.ping import Prober, is_reachable
from pingstat.core.config import REACHABILITY_PROBE_COUNT
from pingstat.core.models import InvalidHostError
from pingstat.storage.db import storage_key

logger = logging.getLogger(__name__)

Ask = Callable[[str], str]
Say = Callable[[str], None]

_YES = frozenset({"y", "yes"})
_NO = frozenset({"n", "no"})
_ACCEPT = frozenset({"a", "add"})
_CHANGE = frozenset({"c", "change"})
_CANCEL = frozenset({"q", "quit", "cancel"})


class RegisterState(str, Enum):
    AWAIT_ANSWER = "await_answer"
    CONFIRMED = "confirmed"
    REFUSED = "refused"


@dataclass
class RegisterPromptFlow:
    host: str
    state: RegisterState = RegisterState.AWAIT_ANSWER

    @property
    def done(self) -> bool:
        return self.state is not RegisterState.AWAIT_ANSWER

    def prompt(self) -> str:
        return f"{self.host} is not a registered server. Register it now? [y/n] "

    def feed(self, answer: str) -> RegisterState:
        if self.done:
            return self.state
        word = answer.strip().lower()
        if word in _YES:
            self.state = RegisterState.CONFIRMED
        elif word in _NO:
            self.state = RegisterState.REFUSED
        return self.state


class UnreachableState(str, Enum):
    AWAIT_CHOICE = "await_choice"
    AWAIT_ADDRESS = "await_address"
    PROBING = "probing"
    ACCEPTED = "accepted"
    CANCELLED = "cancelled"


@dataclass
class UnreachableHostFlow:
    """Three-way choice offered when a host does not answer its reachability probe.

    ``candidate`` is the address currently on offer: the original host at
    first, then whichever replacement was tried last.
    """

    candidate: str
    state: UnreachableState = UnreachableState.AWAIT_CHOICE
    error: str | None = None

    @property
    def done(self) -> bool:
        return self.state in (UnreachableState.ACCEPTED, UnreachableState.CANCELLED)

    def prompt(self) -> str:
        if self.state is UnreachableState.AWAIT_ADDRESS:
            return "New address: "
        return f"{self.candidate} did not respond. [a]dd anyway, [c]hange address, [q]uit? "

    def feed(self, answer: str) -> UnreachableState:
        self.error = None
        word = answer.strip()
        if self.state is UnreachableState.AWAIT_CHOICE:
            choice = word.lower()
            if choice in _ACCEPT:
                self.state = UnreachableState.ACCEPTED
            elif choice in _CHANGE:
                self.state = UnreachableState.AWAIT_ADDRESS
            elif choice in _CANCEL:
                self.state = UnreachableState.CANCELLED
        elif self.state is UnreachableState.AWAIT_ADDRESS:
            if word:
                try:
                    storage_key(word)
                except InvalidHostError as exc:
                    self.error = str(exc)
                else:
                    self.candidate = word
                    self.state = UnreachableState.PROBING
        return self.state

    def probe_result(self, reachable: bool) -> UnreachableState:
        if self.state is not UnreachableState.PROBING:
            raise RuntimeError(f"probe_result in state {self.state.value}")
        self.state = UnreachableState.ACCEPTED if reachable else UnreachableState.AWAIT_CHOICE
        return self.state


def _read(ask: Ask, prompt: str) -> str | None:
    try:
        return ask(prompt)
    except EOFError:
        return None


def run_register_prompt(host: str, *, ask: Ask) -> bool:
    flow = RegisterPromptFlow(host)
    while not flow.done:
        answer = _read(ask, flow.prompt())
        if answer is None:
            logger.info("Input closed while asking to register %s", host)
            return False
        flow.feed(answer)
    return flow.state is RegisterState.CONFIRMED


def run_unreachable_flow(
    host: str, *, prober: Prober, ask: Ask, say: Say = print
) -> str | None:
    """Drive the unreachable-host prompt; returns the address to commit or None on cancel."""
    flow = UnreachableHostFlow(host)
    while not flow.done:
        if flow.state is UnreachableState.PROBING:
            reachable = is_reachable(prober(flow.candidate, REACHABILITY_PROBE_COUNT))
            logger.info("Replacement %s reachable=%s", flow.candidate, reachable)
            flow.probe_result(reachable)
            continue
        answer = _read(ask, flow.prompt())
        if answer is None:
            logger.info("Input closed while confirming %s", flow.candidate)
            return None
        flow.feed(answer)
        if flow.error:
            say(flow.error)
    if flow.state is UnreachableState.ACCEPTED:
        return flow.candidate
    return None
