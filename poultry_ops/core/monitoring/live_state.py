"""
Live mirror of the sensor, alert, control and device state subtrees.
"""
import copy
import logging
import threading
from datetime import datetime
from functools import partial
from typing import Any, Dict, List, Optional

from poultry_ops.core.parsing import parse_bool, parse_number
from poultry_ops.infrastructure.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

# Subtree name -> config path group
MIRRORED_ROOTS = {
    "sensors": "sensors",
    "alerts": "alerts",
    "controls": "controls",
    "device_states": "device_states",
}

ALERT_NAMES = (
    "highTemperature",
    "lowTemperature",
    "lowFood",
    "lowWaterMain",
    "lowWaterDrinker",
    "lowHydration",
)

SENSOR_NAMES = ("temperature", "humidity", "food_level", "water_level_main", "water_level_drinker")

RELAY_NAMES = ("fan", "heat", "pump")

CONTROL_FLAG_NAMES = ("fan", "heat", "pump", "feed", "automation_enabled", "water_fill")


def _split(path: str) -> List[str]:
    return [part for part in (path or "").split("/") if part]


def _set_nested(tree: Dict[str, Any], parts: List[str], value: Any) -> Dict[str, Any]:
    if not parts:
        return copy.deepcopy(value) if isinstance(value, dict) else ({} if value is None else value)

    node = tree
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child

    if value is None:
        node.pop(parts[-1], None)
    else:
        node[parts[-1]] = copy.deepcopy(value)
    return tree


def apply_event(snapshot: Any, event_type: str, path: str, data: Any) -> Dict[str, Any]:
    """
    Apply a realtime database event to a local snapshot.

    A 'put' replaces the value at path (None deletes it); a 'patch' merges
    the children of data below path.

    Returns:
        The updated snapshot (a dict)
    """
    tree = snapshot if isinstance(snapshot, dict) else {}
    parts = _split(path)

    if event_type == "patch" and isinstance(data, dict):
        for key, value in data.items():
            tree = _set_nested(tree, parts + _split(key), value)
        return tree

    result = _set_nested(tree, parts, data)
    return result if isinstance(result, dict) else {"value": result}


class LiveStateMirror:
    """
    Keeps the last observed value of every mirrored subtree.

    One listener is registered per subtree. Callbacks arrive on
    firebase_admin listener threads and are applied last-write-wins. Values
    are parsed on read, so a malformed field reads as None (numbers) or
    False (flags). Use as a context manager or call close().
    """

    def __init__(self, firebase_client=None, config=None, redis_client=None):
        if firebase_client is None or config is None:
            from poultry_ops.infrastructure import get_service_factory
            factory = get_service_factory()
            config = config if config is not None else factory.get_config_loader()
            firebase_client = firebase_client if firebase_client is not None else factory.create_firebase_client()

        self.config = config
        self.firebase_client = firebase_client
        self.redis_client = redis_client

        self._lock = threading.Lock()
        self._snapshots: Dict[str, Dict[str, Any]] = {root: {} for root in MIRRORED_ROOTS}
        self._registrations = []
        self.last_update: Optional[datetime] = None

        self.paths = {root: self.config.path(group, 'root') for root, group in MIRRORED_ROOTS.items()}
        self.cache_key = f"{self.config.get('redis.key_prefixes.live_state', 'state:')}snapshot"
        self.cache_ttl = self.config.get('redis.expiration.live_state', 600)

    @property
    def running(self) -> bool:
        return bool(self._registrations)

    def start(self) -> None:
        """
        Subscribe to every mirrored subtree.

        Raises:
            StoreUnavailableError: a subscription failed (already opened ones are closed)
        """
        if self._registrations:
            return

        try:
            for root, path in self.paths.items():
                registration = self.firebase_client.listen(path, partial(self._on_event, root))
                self._registrations.append(registration)
        except StoreUnavailableError:
            self.close()
            raise

        logger.info(f"Live state mirror started ({len(self._registrations)} listeners)")

    def close(self) -> None:
        """Close every listener registration."""
        registrations, self._registrations = self._registrations, []
        for registration in registrations:
            try:
                registration.close()
            except Exception as e:
                logger.error(f"Error closing listener: {str(e)}")

        if registrations:
            logger.info("Live state mirror stopped")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _on_event(self, root: str, event) -> None:
        with self._lock:
            self._snapshots[root] = apply_event(
                self._snapshots[root], event.event_type, event.path, event.data
            )
            self.last_update = datetime.now()

        logger.debug(f"{root} changed ({event.event_type} at {event.path})")
        self._cache_snapshot()

    def refresh(self) -> Dict[str, Any]:
        """
        Read every subtree once and replace the local snapshots.

        A refresh may race with listener callbacks; the last one applied wins.
        """
        for root, path in self.paths.items():
            data = self.firebase_client.get(path, {})
            with self._lock:
                self._snapshots[root] = apply_event({}, "put", "/", data)
                self.last_update = datetime.now()

        self._cache_snapshot()
        return self.snapshot()

    def _cache_snapshot(self) -> None:
        if self.redis_client is None:
            return
        if not self.redis_client.set(self.cache_key, self.snapshot(), expire=self.cache_ttl):
            logger.warning("Could not cache live state")

    def _raw(self, root: str) -> Dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._snapshots[root])

    @staticmethod
    def _leaf(path: str) -> str:
        return path.rsplit("/", 1)[-1]

    def sensors(self) -> Dict[str, Optional[float]]:
        """Latest sensor readings; None when missing or not numeric."""
        raw = self._raw("sensors")
        return {
            name: parse_number(raw.get(self._leaf(self.config.path('sensors', name))))
            for name in SENSOR_NAMES
        }

    def alerts(self) -> Dict[str, bool]:
        raw = self._raw("alerts")
        return {name: parse_bool(raw.get(name)) for name in ALERT_NAMES}

    def active_alerts(self) -> List[str]:
        return [name for name, active in self.alerts().items() if active]

    def control_flag(self, name: str) -> Optional[bool]:
        """
        Last observed value of a control flag.

        Args:
            name: Config name of the flag (feed, water_fill, automation_enabled, ...)

        Returns:
            The parsed flag, or None when it was never observed
        """
        key = self._leaf(self.config.path('controls', name))
        raw = self._raw("controls")
        if key not in raw:
            return None
        return parse_bool(raw[key])

    def controls(self) -> Dict[str, Any]:
        raw = self._raw("controls")
        result = {name: parse_bool(raw.get(self._leaf(self.config.path('controls', name))))
                  for name in CONTROL_FLAG_NAMES}
        result["feed_duration"] = parse_number(raw.get(self._leaf(self.config.path('controls', 'feed_duration'))))
        return result

    def has_device_states(self) -> bool:
        raw = self._raw("device_states")
        return any(name in raw for name in RELAY_NAMES)

    def device_states(self) -> Dict[str, Optional[bool]]:
        """
        Actual relay states (True = on).

        Relays are active-low, so the stored value is inverted.
        """
        raw = self._raw("device_states")
        return {name: (not parse_bool(raw[name])) if name in raw else None for name in RELAY_NAMES}

    def snapshot(self) -> Dict[str, Any]:
        """Parsed view of everything mirrored."""
        return {
            "sensors": self.sensors(),
            "alerts": self.alerts(),
            "active_alerts": self.active_alerts(),
            "controls": self.controls(),
            "device_states": self.device_states(),
            "last_update": self.last_update.isoformat() if self.last_update else None
        }
