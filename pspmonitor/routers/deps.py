"""
FastAPI dependencies.

The storage backend and event broadcaster are created by the application
lifespan and kept on ``app.state``; services are built per request around
them.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Query, Request
from pydantic import AwareDatetime, ValidationError

from pspmonitor.config import Settings
from pspmonitor.models.metrics import TimeRange
from pspmonitor.services import AlertService, EventBroadcaster, IngestionService, MetricsService
from pspmonitor.storage.base import StorageBackend


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_storage(request: Request) -> StorageBackend:
    """Storage backend opened at startup."""
    return request.app.state.storage


def get_broadcaster(request: Request) -> EventBroadcaster:
    """SSE broadcaster shared by all requests."""
    return request.app.state.broadcaster


def get_time_range(
    from_: Optional[AwareDatetime] = Query(
        default=None,
        alias="from",
        description="Window start, ISO-8601 with offset (default: 'to' minus the default window)",
    ),
    to: Optional[AwareDatetime] = Query(
        default=None,
        description="Window end, ISO-8601 with offset (default: now)",
    ),
    settings: Settings = Depends(get_app_settings),
) -> TimeRange:
    """
    Resolve the query window, filling in configured defaults.

    Raises:
        HTTPException: 400 if 'from' is later than 'to', or a bound
            cannot be converted to UTC
    """
    end = to or datetime.now(timezone.utc)
    try:
        if from_ is None:
            return TimeRange.ending_at(end, timedelta(minutes=settings.default_time_window_minutes))
        return TimeRange(start=from_, end=end)
    except ValidationError as e:
        message = e.errors()[0]["msg"].removeprefix("Value error, ")
        raise HTTPException(status_code=400, detail=message)


def get_metrics_service(
    storage: StorageBackend = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
) -> MetricsService:
    """Metrics service bound to the configured thresholds."""
    return MetricsService(
        storage=storage,
        thresholds=settings.alert_thresholds,
        default_window_minutes=settings.default_time_window_minutes,
    )


def get_alert_service(
    metrics_service: MetricsService = Depends(get_metrics_service),
) -> AlertService:
    """Alert summary service."""
    return AlertService(metrics_service)


def get_ingestion_service(
    storage: StorageBackend = Depends(get_storage),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
) -> IngestionService:
    """Ingestion service publishing to the SSE broadcaster."""
    return IngestionService(storage=storage, broadcaster=broadcaster)
