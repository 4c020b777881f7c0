"""
Business logic layer.
Services orchestrate storage access and the pure evaluation engine.
"""

from pspmonitor.services.alert_service import AlertService
from pspmonitor.services.event_broadcaster import EventBroadcaster
from pspmonitor.services.ingestion_service import IngestionService
from pspmonitor.services.metrics_service import MetricsService
from pspmonitor.services.snapshot import MetricsSnapshotReader

__all__ = [
    "AlertService",
    "EventBroadcaster",
    "IngestionService",
    "MetricsService",
    "MetricsSnapshotReader",
]
