from __future__ import annotations

from fastapi import APIRouter, Query, Request

from pingstat.api.schemas import HealthResponse, SamplesResponse, ServersResponse, StatsResponse
from pingstat.core.config import APP_VERSION, DAILY_DEFAULT_LIMIT, MONTHLY_DEFAULT_LIMIT, Settings
from pingstat.core.models import Granularity, InvalidHostError
from pingstat.services.stats import bucket_stats
from pingstat.storage.db import open_store, storage_key
from pingstat.storage.registry_file import load_hosts
from pingstat.storage.samples import count_samples, get_latest_samples

router = APIRouter(prefix="/api")


def _settings(request: Request) -> Settings:
    return request.app.state.settings


def _unknown_host_meta(host: str, settings: Settings) -> dict[str, str] | None:
    try:
        storage_key(host)
    except InvalidHostError as exc:
        return {"message": str(exc)}
    if host not in load_hosts(settings.config_path):
        return {"message": "not registered"}
    return None


@router.get("/health")
def health() -> HealthResponse:
    return HealthResponse(ok=True, data={"status": "ok", "version": APP_VERSION}, meta={})


@router.get("/servers")
def servers(request: Request) -> ServersResponse:
    hosts = load_hosts(_settings(request).config_path)
    return ServersResponse(ok=True, data=hosts, meta={"count": len(hosts)})


@router.get("/servers/{host}/samples")
def samples(
    host: str,
    request: Request,
    limit: int = Query(default=50, ge=1, le=500),
) -> SamplesResponse:
    settings = _settings(request)
    unknown = _unknown_host_meta(host, settings)
    if unknown is not None:
        return SamplesResponse(ok=False, data=[], meta={"host": host, **unknown})

    with open_store(host, settings.db_dir) as conn:
        rows = get_latest_samples(conn, limit=limit)
        total = count_samples(conn)

    return SamplesResponse(
        ok=True,
        data=rows,
        meta={"host": host, "limit": limit, "count": len(rows), "total": total},
    )


def _stats_response(
    host: str, request: Request, granularity: Granularity, limit: int
) -> StatsResponse:
    settings = _settings(request)
    unknown = _unknown_host_meta(host, settings)
    if unknown is not None:
        return StatsResponse(ok=False, data=[], meta={"host": host, **unknown})

    buckets = bucket_stats(host, settings, granularity, limit)
    return StatsResponse(
        ok=True,
        data=[b.to_dict() for b in buckets],
        meta={
            "host": host,
            "granularity": granularity.value,
            "limit": limit,
            "count": len(buckets),
        },
    )


@router.get("/servers/{host}/daily")
def daily(
    host: str,
    request: Request,
    limit: int = Query(default=DAILY_DEFAULT_LIMIT, ge=1, le=366),
) -> StatsResponse:
    return _stats_response(host, request, Granularity.DAY, limit)


@router.get("/servers/{host}/monthly")
def monthly(
    host: str,
    request: Request,
    limit: int = Query(default=MONTHLY_DEFAULT_LIMIT, ge=1, le=120),
) -> StatsResponse:
    return _stats_response(host, request, Granularity.MONTH, limit)
