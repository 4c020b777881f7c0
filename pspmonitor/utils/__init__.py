"""Utility modules for logging, rounding, and common helpers."""

from pspmonitor.utils.logging import configure_logging, get_logger
from pspmonitor.utils.rounding import round_half_away

__all__ = ["configure_logging", "get_logger", "round_half_away"]
