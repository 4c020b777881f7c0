"""
PSP health router.

Wired to:
- MetricsService for per-PSP health, payment-method breakdowns, trends and scores
"""

from fastapi import APIRouter, Depends, HTTPException

from pspmonitor.models.metrics import TimeRange
from pspmonitor.routers.deps import get_metrics_service, get_time_range
from pspmonitor.services import MetricsService

router = APIRouter()


def _not_found(psp: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"No data found for PSP: {psp}")


@router.get("")
async def list_psp_health(
    time_range: TimeRange = Depends(get_time_range),
    service: MetricsService = Depends(get_metrics_service),
):
    """
    Metrics, health status and alerts for every PSP in the window.
    """
    results = service.get_all_psp_health(time_range)
    return {
        "success": True,
        "data": {
            "psps": [r.model_dump(mode="json", by_alias=True) for r in results],
        },
    }


# Registered before /{psp} so "scores" is not captured as a PSP name
@router.get("/scores")
async def list_health_scores(
    time_range: TimeRange = Depends(get_time_range),
    service: MetricsService = Depends(get_metrics_service),
):
    """
    Composite 0-100 health score for every PSP in the window.
    """
    scores = service.get_health_scores(time_range)
    return {
        "success": True,
        "data": {
            "scores": [s.model_dump(mode="json") for s in scores],
        },
    }


@router.get("/{psp}")
async def get_psp_health(
    psp: str,
    time_range: TimeRange = Depends(get_time_range),
    service: MetricsService = Depends(get_metrics_service),
):
    """
    Metrics, health status and alerts for one PSP.
    """
    health = service.get_psp_health(psp, time_range)
    if health is None:
        raise _not_found(psp)

    return {
        "success": True,
        "data": health.model_dump(mode="json", by_alias=True),
    }


@router.get("/{psp}/methods")
async def get_payment_method_breakdown(
    psp: str,
    time_range: TimeRange = Depends(get_time_range),
    service: MetricsService = Depends(get_metrics_service),
):
    """
    Metrics for one PSP split by payment method.
    """
    methods = service.get_payment_method_breakdown(psp, time_range)
    if not methods:
        raise _not_found(psp)

    return {
        "success": True,
        "data": {
            "psp": psp,
            "methods": [m.model_dump(mode="json", by_alias=True) for m in methods],
        },
    }


@router.get("/{psp}/trends")
async def get_psp_trends(
    psp: str,
    time_range: TimeRange = Depends(get_time_range),
    service: MetricsService = Depends(get_metrics_service),
):
    """
    Current window vs. the preceding 24 hours for one PSP.
    """
    trends = service.get_trends(psp, time_range)
    if trends is None:
        raise _not_found(psp)

    return {
        "success": True,
        "data": trends.model_dump(mode="json", by_alias=True),
    }
