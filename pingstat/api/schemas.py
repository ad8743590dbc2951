from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class HealthData(BaseModel):
    status: str
    version: str


class HealthResponse(BaseModel):
    ok: bool
    data: HealthData | None = None
    meta: dict[str, Any] = Field(default_factory=dict)


class ServersResponse(BaseModel):
    ok: bool
    data: list[str] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)


class SampleData(BaseModel):
    id: int
    ts: str
    min_ms: float | None = None
    avg_ms: float | None = None
    max_ms: float | None = None
    mdev_ms: float | None = None
    loss_percent: float


class SamplesResponse(BaseModel):
    ok: bool
    data: list[SampleData] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)


class BucketData(BaseModel):
    bucket: str
    weekday: str | None = None
    abs_min: float | None = None
    avg_min: float | None = None
    avg_avg: float | None = None
    avg_max: float | None = None
    abs_max: float | None = None
    avg_loss: float | None = None
    num_pings: int


class StatsResponse(BaseModel):
    ok: bool
    data: list[BucketData] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)
