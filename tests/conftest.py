from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import pytest

from pingstat.core.config import Settings
from pingstat.core.models import Measurement

REPLY = Measurement(loss=0.0, min=10.0, avg=12.5, max=15.0, mdev=1.25, transmitted=1, received=1)


class FakeProber:
    """Stands in for the ping binary: answers from a table, 100% loss for anything else."""

    def __init__(self, replies: dict[str, Measurement] | None = None) -> None:
        self.replies = dict(replies or {})
        self.calls: list[tuple[str, int]] = []

    def __call__(self, host: str, count: int) -> Measurement:
        self.calls.append((host, count))
        return self.replies.get(host, Measurement.degraded())

    def hosts_probed(self) -> list[str]:
        return [h for h, _ in self.calls]


class ScriptedAsk:
    def __init__(self, answers: Iterable[str]) -> None:
        self.answers = list(answers)
        self.prompts: list[str] = []

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)


def _no_input(prompt: str) -> str:
    raise AssertionError(f"unexpected prompt: {prompt!r}")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "PINGSTAT_HOME",
        "PINGSTAT_CONFIG",
        "PINGSTAT_PROBE_COUNT",
        "PINGSTAT_PROBE_TIMEOUT",
        "PINGSTAT_ANCHORS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logger = logging.getLogger("pingstat")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        data_dir=tmp_path,
        config_path=tmp_path / "pingstat.conf",
        probe_count=4,
        anchors=("8.8.8.8",),
    )


@pytest.fixture
def online_prober() -> FakeProber:
    return FakeProber({"8.8.8.8": REPLY, "kernel.org": REPLY, "example.net": REPLY})


@pytest.fixture
def no_input():
    return _no_input


@pytest.fixture
def interfaces_up(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("pingstat.services.recorder.any_interface_up", lambda: True)
