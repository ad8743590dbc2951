from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class InvalidHostError(ValueError):
    """Raised when a host string cannot be used as a probe target or storage key."""


class Granularity(str, Enum):
    DAY = "day"
    MONTH = "month"


class AddResult(str, Enum):
    ADDED = "added"
    ALREADY_PRESENT = "already_present"
    DECLINED = "declined"


class RemoveResult(str, Enum):
    REMOVED = "removed"
    NOT_FOUND = "not_found"


class ResolveResult(str, Enum):
    REGISTERED = "registered"
    NOT_REGISTERED = "not_registered"


@dataclass(frozen=True, slots=True)
class Measurement:
    loss: float = 100.0
    min: float | None = None
    avg: float | None = None
    max: float | None = None
    mdev: float | None = None
    transmitted: int | None = None
    received: int | None = None

    @classmethod
    def degraded(cls) -> "Measurement":
        return cls()

    @property
    def has_rtt(self) -> bool:
        return self.avg is not None


@dataclass(frozen=True, slots=True)
class Bucket:
    bucket: str
    abs_min: float | None
    avg_min: float | None
    avg_avg: float | None
    avg_max: float | None
    abs_max: float | None
    avg_loss: float | None
    num_pings: int
    weekday: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "bucket": self.bucket,
            "weekday": self.weekday,
            "abs_min": self.abs_min,
            "avg_min": self.avg_min,
            "avg_avg": self.avg_avg,
            "avg_max": self.avg_max,
            "abs_max": self.abs_max,
            "avg_loss": self.avg_loss,
            "num_pings": self.num_pings,
        }


@dataclass(frozen=True, slots=True)
class AddOutcome:
    result: AddResult
    host: str


@dataclass(frozen=True, slots=True)
class ResolveOutcome:
    result: ResolveResult
    host: str


@dataclass(slots=True)
class HostReport:
    host: str
    measurement: Measurement | None = None
    sample_id: int | None = None
    error: str | None = None

    @property
    def recorded(self) -> bool:
        return self.sample_id is not None


@dataclass(slots=True)
class BatchReport:
    connectivity_ok: bool = True
    hosts: list[HostReport] = field(default_factory=list)

    @property
    def recorded(self) -> int:
        return sum(1 for h in self.hosts if h.recorded)

    @property
    def failed(self) -> int:
        return sum(1 for h in self.hosts if h.error is not None)
