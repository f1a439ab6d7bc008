"""
Daily hydration of the flock from the water logs.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from poultry_ops.core.parsing import parse_number
from poultry_ops.core.analytics.aggregator import midnight, resolve_now
from poultry_ops.infrastructure.database import records_from_snapshot

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLDS = {"warning": 180, "alert": 120}


def start_of_day(now: datetime) -> int:
    """Epoch seconds of local midnight for the day of now."""
    return int(midnight(now.date(), now.tzinfo).timestamp())


def total_water_since(logs: Iterable[Dict[str, Any]], start: int) -> float:
    """Sum the positive volumeDispensed of the logs with timestamp >= start."""
    total = 0.0
    for log in logs:
        timestamp = parse_number(log.get("timestamp"))
        volume = parse_number(log.get("volumeDispensed"))
        if timestamp is None or volume is None or volume <= 0:
            continue
        if timestamp >= start:
            total += volume
    return total


def hydration_status(water_per_bird: float, thresholds: Optional[Dict[str, float]] = None) -> str:
    """
    Classify the water drunk per bird today.

    Returns:
        'alert' below the alert threshold, 'warning' below the warning
        threshold, 'normal' otherwise
    """
    thresholds = thresholds or DEFAULT_THRESHOLDS
    if water_per_bird < thresholds["alert"]:
        return "alert"
    if water_per_bird < thresholds["warning"]:
        return "warning"
    return "normal"


class HydrationMonitor:
    """Computes today's hydration report from /waterLogs."""

    def __init__(self, firebase_client=None, config=None):
        if firebase_client is None or config is None:
            from poultry_ops.infrastructure import get_service_factory
            factory = get_service_factory()
            config = config if config is not None else factory.get_config_loader()
            firebase_client = firebase_client if firebase_client is not None else factory.create_firebase_client()

        self.config = config
        self.firebase_client = firebase_client
        self.thresholds = self.config.get('calibration.hydration_thresholds', DEFAULT_THRESHOLDS)
        self.logs_path = self.config.path('logs', 'water')

    def get_report(self, chicken_count: int, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Hydration report for today.

        Args:
            chicken_count: Number of birds (water per bird is 0 when 0)
            now: Reference instant

        Returns:
            Dict with total_water_today, water_per_bird, status and thresholds
        """
        now = resolve_now(now)
        logs = records_from_snapshot(self.firebase_client.get(self.logs_path, {}))

        total = total_water_since(logs, start_of_day(now))
        per_bird = total / chicken_count if chicken_count > 0 else 0
        status = hydration_status(per_bird, self.thresholds)

        if status != "normal":
            logger.info(f"Hydration {status}: {per_bird:.1f}ml per bird today")

        return {
            "total_water_today": total,
            "water_per_bird": per_bird,
            "chicken_count": chicken_count,
            "status": status,
            "thresholds": dict(self.thresholds),
            "timestamp": now.isoformat()
        }
