"""
Temperature and humidity history for the historical chart.
"""
import logging
import math
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Union

from poultry_ops.core.parsing import parse_number
from poultry_ops.infrastructure.database import records_from_snapshot
from poultry_ops.infrastructure.exceptions import ValidationError
from .aggregator import resolve_now, midnight
from .models import HistoryPage, HistoryPoint, Period

logger = logging.getLogger(__name__)

POINTS_PER_PAGE = {
    Period.DAY: 24,
    Period.WEEK: 7 * 24,
    Period.MONTH: 30 * 24,
}

NO_DATA_TODAY = "No data available for today. Switch to Week or Month view to see historical data."
NO_VALID_DATA = "No valid data points found"


def clean_history(records: Iterable[Dict[str, Any]]) -> List[HistoryPoint]:
    """
    Coerce history records and drop the unusable ones.

    Temperature and humidity become None when not numeric. A point is kept
    when its timestamp is positive and it has at least one reading.
    Returns the points sorted by timestamp.
    """
    points = []
    for record in records:
        timestamp = parse_number(record.get("timestamp"))
        if timestamp is None or int(timestamp) <= 0:
            continue

        temperature = parse_number(record.get("temperature"))
        humidity = parse_number(record.get("humidity"))
        if temperature is None and humidity is None:
            continue

        points.append(HistoryPoint(
            timestamp=int(timestamp),
            temperature=temperature,
            humidity=humidity,
            key=record.get("id")
        ))

    points.sort(key=lambda point: point.timestamp)
    return points


def history_window_start(period: Period, now: datetime) -> int:
    """day: local midnight; week and month: the last 7 and 30 days."""
    if period == Period.DAY:
        return int(midnight(now.date(), now.tzinfo).timestamp())
    days = 7 if period == Period.WEEK else 30
    return int((now - timedelta(days=days)).timestamp())


def build_history_page(
    records: Iterable[Dict[str, Any]],
    period: Union[Period, str],
    page: Optional[int] = None,
    now: Optional[datetime] = None
) -> HistoryPage:
    """
    Window and paginate history records.

    An empty day window reports no data. An empty week or month window
    falls back to every valid point.

    Args:
        records: Raw /history records
        period: day, week or month
        page: Zero-based page; the last page when omitted
        now: Reference instant

    Returns:
        HistoryPage
    """
    period = Period(period)
    now = resolve_now(now)
    per_page = POINTS_PER_PAGE[period]

    points = clean_history(records)
    if not points:
        return HistoryPage(period=period, has_data=False, message=NO_VALID_DATA, points_per_page=per_page)

    start = history_window_start(period, now)
    selected = [point for point in points if point.timestamp >= start]
    used_fallback = False

    if not selected:
        if period == Period.DAY:
            return HistoryPage(period=period, has_data=False, message=NO_DATA_TODAY, points_per_page=per_page)
        logger.info(f"No history in the last {period.value}, using all available data")
        selected = points
        used_fallback = True

    total_pages = max(1, math.ceil(len(selected) / per_page))
    if page is None:
        page = total_pages - 1
    if not 0 <= page < total_pages:
        raise ValidationError(message=f"Page {page} out of range (0-{total_pages - 1})", field="page")

    return HistoryPage(
        period=period,
        has_data=True,
        page=page,
        total_pages=total_pages,
        points_per_page=per_page,
        used_fallback=used_fallback,
        points=selected[page * per_page:(page + 1) * per_page]
    )


class HistoryService:
    """Reads /history and builds chart pages."""

    def __init__(self, firebase_client=None, config=None):
        if firebase_client is None or config is None:
            from poultry_ops.infrastructure import get_service_factory
            factory = get_service_factory()
            config = config if config is not None else factory.get_config_loader()
            firebase_client = firebase_client if firebase_client is not None else factory.create_firebase_client()

        self.config = config
        self.firebase_client = firebase_client
        self.history_path = self.config.path('logs', 'history')

    def get_page(self, period: Union[Period, str], page: Optional[int] = None,
                 now: Optional[datetime] = None) -> HistoryPage:
        records = records_from_snapshot(self.firebase_client.get(self.history_path, {}))
        return build_history_page(records, period, page=page, now=now)
