"""API routers for all endpoints."""

from pspmonitor.routers import alerts, events, health, transactions

__all__ = [
    "alerts",
    "events",
    "health",
    "transactions",
]
