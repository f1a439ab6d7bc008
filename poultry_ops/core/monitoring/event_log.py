"""
Recent events (alerts, feedings, waterings) filtered by recency window.
"""
import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from poultry_ops.core.parsing import parse_number
from poultry_ops.core.analytics.aggregator import resolve_now
from poultry_ops.core.monitoring.hydration import start_of_day
from poultry_ops.infrastructure.database import records_from_snapshot
from poultry_ops.infrastructure.exceptions import ResourceNotFoundError, ValidationError

logger = logging.getLogger(__name__)

WINDOWS = ("day", "week", "month", "all")

ALARM_TYPES = ("highTemperature", "lowTemperature", "lowFood", "lowWaterMain", "lowWaterDrinker")

DEFAULT_DESCRIPTIONS = {
    "highTemperature": "Temperature exceeded safe threshold",
    "lowTemperature": "Temperature below safe threshold",
    "lowFood": "Food level is low",
    "lowWaterMain": "Main water tank level is low",
    "lowWaterDrinker": "Drinker water level is low",
    "feeding": "Automatic feeding activated",
}


def window_cutoff(window: str, now: datetime) -> Optional[int]:
    """
    Earliest timestamp shown for a recency window.

    day is since local midnight, week and month are the last 7 and 30 days.
    Returns None for 'all'.
    """
    if window == "day":
        return start_of_day(now)
    if window == "week":
        return int((now - timedelta(days=7)).timestamp())
    if window == "month":
        return int((now - timedelta(days=30)).timestamp())
    if window == "all":
        return None
    raise ValidationError(message=f"Invalid window: {window}. Valid windows: {', '.join(WINDOWS)}", field="window")


def describe_event(event: Dict[str, Any]) -> str:
    description = event.get("description")
    if isinstance(description, str) and description:
        return description
    return DEFAULT_DESCRIPTIONS.get(event.get("type"), "System event")


def event_severity(event_type: Optional[str]) -> str:
    if event_type in ALARM_TYPES:
        return "alert"
    if event_type in ("feeding", "watering"):
        return "info"
    return "system"


def normalize_event(record: Dict[str, Any]) -> Dict[str, Any]:
    timestamp = parse_number(record.get("timestamp"))
    return {
        "id": record.get("id"),
        "timestamp": int(timestamp) if timestamp is not None else 0,
        "type": record.get("type") or "system",
        "description": describe_event(record),
        "severity": event_severity(record.get("type"))
    }


def filter_events(events: List[Dict[str, Any]], window: str, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Events inside the window, newest first."""
    cutoff = window_cutoff(window, resolve_now(now))
    selected = [event for event in events if cutoff is None or event["timestamp"] >= cutoff]
    return sorted(selected, key=lambda event: event["timestamp"], reverse=True)


class EventLogView:
    """
    Holds the last events read from /events and serves filtered pages of them.

    Deletion removes the event locally first, then from the database. There
    is no undo.
    """

    def __init__(self, firebase_client=None, config=None, limit: int = 100, visible_count: int = 15):
        if firebase_client is None or config is None:
            from poultry_ops.infrastructure import get_service_factory
            factory = get_service_factory()
            config = config if config is not None else factory.get_config_loader()
            firebase_client = firebase_client if firebase_client is not None else factory.create_firebase_client()

        self.config = config
        self.firebase_client = firebase_client
        self.limit = limit
        self.visible_count = visible_count
        self.events_path = self.config.path('logs', 'events')

        self._lock = threading.Lock()
        self._events: List[Dict[str, Any]] = []

    def load(self) -> List[Dict[str, Any]]:
        """Read the last events ordered by timestamp, newest first."""
        data = self.firebase_client.get_latest(self.events_path, limit=self.limit, order_by="timestamp")
        events = [normalize_event(record) for record in records_from_snapshot(data)]
        events.sort(key=lambda event: event["timestamp"], reverse=True)

        with self._lock:
            self._events = events

        logger.debug(f"Loaded {len(events)} events")
        return list(events)

    @property
    def events(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._events)

    def view(self, window: str = "day", show_all: bool = False, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Filter the loaded events.

        Args:
            window: day, week, month or all
            show_all: Return every matching event instead of the first ones
            now: Reference instant

        Returns:
            Dict with the window, the matching count, has_more and the events
        """
        matching = filter_events(self.events, window, now)
        visible = matching if show_all else matching[:self.visible_count]

        return {
            "window": window,
            "total": len(matching),
            "show_all": show_all,
            "has_more": len(matching) > self.visible_count,
            "events": visible
        }

    def delete(self, key: str) -> Dict[str, Any]:
        """
        Remove an event by key.

        Raises:
            ResourceNotFoundError: the key is not among the loaded events
        """
        with self._lock:
            remaining = [event for event in self._events if event["id"] != key]
            found = len(remaining) != len(self._events)
            self._events = remaining

        if not found:
            raise ResourceNotFoundError(message=f"Event {key} not found", resource_type="event", resource_id=key)

        try:
            self.firebase_client.delete(f"{self.events_path}/{key}")
        except Exception as e:
            logger.error(f"Error deleting event {key}: {str(e)}")
            return {
                "success": False,
                "message": f"Failed to delete event: {str(e)}",
                "error_code": "write_failed"
            }

        logger.info(f"Deleted event {key}")
        return {"success": True, "message": "Event deleted", "id": key}
