"""
Hour-keyed feeding and watering schedules.
"""
import logging
from typing import Any, Dict, Mapping

from poultry_ops.core.parsing import parse_bool
from poultry_ops.infrastructure.exceptions import ValidationError

logger = logging.getLogger(__name__)

SCHEDULE_KINDS = {
    "feeding": "feeding_schedule",
    "water": "water_schedule",
}


class HourlyScheduleManager:
    """
    Reads and writes /feedingSchedule and /waterSchedule.

    Each schedule maps an hour ("0".."23") to a boolean. Stored values are
    parsed with parse_bool, so "true", 1 and "1" are accepted as enabled.
    """

    def __init__(self, firebase_client=None, config=None):
        if firebase_client is None or config is None:
            from poultry_ops.infrastructure import get_service_factory
            factory = get_service_factory()
            config = config if config is not None else factory.get_config_loader()
            firebase_client = firebase_client if firebase_client is not None else factory.create_firebase_client()

        self.config = config
        self.firebase_client = firebase_client

    def _schedule_path(self, kind: str) -> str:
        if kind not in SCHEDULE_KINDS:
            raise ValidationError(
                message=f"Invalid schedule: {kind}. Valid schedules: {', '.join(SCHEDULE_KINDS)}",
                field="kind"
            )
        return self.config.path('settings', SCHEDULE_KINDS[kind])

    @staticmethod
    def _check_hour(hour: Any) -> int:
        try:
            hour = int(hour)
        except (TypeError, ValueError):
            raise ValidationError(message=f"Invalid hour: {hour}", field="hour")
        if not 0 <= hour <= 23:
            raise ValidationError(message=f"Hour must be between 0 and 23, got {hour}", field="hour")
        return hour

    def get_schedule(self, kind: str) -> Dict[int, bool]:
        """
        Read a schedule.

        Args:
            kind: feeding or water

        Returns:
            Dict of all 24 hours -> enabled
        """
        raw = self.firebase_client.get(self._schedule_path(kind), {})

        if isinstance(raw, list):
            raw = {str(index): value for index, value in enumerate(raw)}
        elif not isinstance(raw, dict):
            raw = {}

        schedule = {hour: False for hour in range(24)}
        for key, value in raw.items():
            try:
                hour = self._check_hour(key)
            except ValidationError:
                logger.warning(f"Ignoring invalid {kind} schedule key: {key}")
                continue
            schedule[hour] = parse_bool(value)

        return schedule

    def set_hour(self, kind: str, hour: int, enabled: bool) -> Dict[str, Any]:
        """Enable or disable one hour of a schedule."""
        path = f"{self._schedule_path(kind)}/{self._check_hour(hour)}"

        try:
            self.firebase_client.set(path, bool(enabled))
        except Exception as e:
            logger.error(f"Error updating {kind} schedule: {str(e)}")
            return {
                "success": False,
                "message": f"Failed to update {kind} schedule: {str(e)}",
                "error_code": "write_failed"
            }

        logger.info(f"{kind} schedule hour {hour} {'enabled' if enabled else 'disabled'}")
        return {"success": True, "message": f"{kind.capitalize()} schedule updated", "hour": int(hour), "enabled": bool(enabled)}

    def toggle_hour(self, kind: str, hour: int) -> Dict[str, Any]:
        hour = self._check_hour(hour)
        current = self.get_schedule(kind)[hour]
        return self.set_hour(kind, hour, not current)

    def replace_schedule(self, kind: str, hours: Mapping[Any, Any]) -> Dict[str, Any]:
        """
        Write several hours at once.

        Args:
            kind: feeding or water
            hours: Mapping of hour -> enabled

        Returns:
            Dict with 'success', 'message' and the resulting schedule
        """
        updates = {str(self._check_hour(hour)): parse_bool(value) for hour, value in hours.items()}
        if not updates:
            raise ValidationError(message="No hour to update", field="hours")

        try:
            self.firebase_client.update(self._schedule_path(kind), updates)
        except Exception as e:
            logger.error(f"Error updating {kind} schedule: {str(e)}")
            return {
                "success": False,
                "message": f"Failed to update {kind} schedule: {str(e)}",
                "error_code": "write_failed"
            }

        logger.info(f"{kind} schedule updated ({len(updates)} hours)")
        return {
            "success": True,
            "message": f"{kind.capitalize()} schedule updated",
            "schedule": self.get_schedule(kind)
        }

    def enabled_hours(self, kind: str):
        """Sorted list of enabled hours."""
        return [hour for hour, enabled in sorted(self.get_schedule(kind).items()) if enabled]
