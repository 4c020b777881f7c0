"""
Alert summary and threshold configuration router.
"""

from fastapi import APIRouter, Depends

from pspmonitor.config import Settings
from pspmonitor.engine.monitors import HealthEvaluator
from pspmonitor.models.metrics import TimeRange
from pspmonitor.routers.deps import get_alert_service, get_app_settings, get_time_range
from pspmonitor.services import AlertService
router = APIRouter()


@router.get("")
async def get_alert_summary(
    time_range: TimeRange = Depends(get_time_range),
    service: AlertService = Depends(get_alert_service),
):
    """
    PSPs grouped into unhealthy, degraded and healthy for the window.
    """
    summary = service.get_alert_summary(time_range)
    return {
        "success": True,
        "data": summary.model_dump(mode="json", by_alias=True),
    }


@router.get("/config")
async def get_alert_config(settings: Settings = Depends(get_app_settings)):
    """
    Human-readable view of the configured alert thresholds.
    """
    evaluator = HealthEvaluator(settings.alert_thresholds)
    return {
        "success": True,
        "data": {"thresholds": evaluator.describe_thresholds()},
    }
