"""
Water pump control: ml to pump time, water dispense, manual fill and settings.
"""
import logging
from typing import Any, Dict, Optional

from poultry_ops.core.parsing import parse_bool, parse_number
from poultry_ops.infrastructure.exceptions import ValidationError
from .base_sender import BaseCommandSender

logger = logging.getLogger(__name__)


def calculate_pump_run_time(ml: float, flow_rate: float) -> float:
    """
    Seconds the pump runs to deliver ml.

    Raises:
        ValidationError: flow rate is not positive or ml is negative
    """
    if flow_rate is None or flow_rate <= 0:
        raise ValidationError(message=f"Flow rate must be positive, got {flow_rate}", field="flow_rate")
    if ml < 0:
        raise ValidationError(message="Water amount cannot be negative", field="ml")
    return ml / flow_rate


class WaterController(BaseCommandSender):
    """
    Sends water commands through /controls/waterFill.

    The device runs the pump for /waterSettings/fillDuration (whole seconds)
    when the trigger rises. A dispense publishes its own run time there and
    puts the operator's manual fill duration back when the trigger is reset.
    """

    def __init__(self, **kwargs):
        super().__init__(actuator_type="water_pump", trigger_name="water_fill", **kwargs)

        self.consumption_rates = self.config.get('calibration.water_consumption_rates', {})
        self.default_flow_rate = self.config.get_water_flow_rate()
        self.default_fill_duration = float(self.config.get('calibration.water_fill_duration', 30))
        self.fill_reset_delay = float(self.config.get_interval('water_fill_reset', 2))

        self.settings_path = self.config.path('settings', 'water_settings')
        self.logs_path = self.config.path('logs', 'water')
        self.fill_duration_path = f"{self.settings_path}/fillDuration"
        self._restore_fill_duration = False
        self._saved_fill_duration = None

    def reset_trigger(self) -> None:
        """Reset the trigger, then restore the manual fill duration a dispense replaced."""
        try:
            super().reset_trigger()
        finally:
            if self._restore_fill_duration:
                self._restore_manual_fill_duration()

    def _restore_manual_fill_duration(self) -> None:
        saved, self._restore_fill_duration = self._saved_fill_duration, False
        if saved is None:
            self.firebase_client.delete(self.fill_duration_path)
        else:
            self.firebase_client.set(self.fill_duration_path, saved)
        logger.info(f"Manual fill duration restored to {saved}")

    def calculate_recommended_water(self, age_group: str, chicken_count: int) -> float:
        """Daily water for a flock, in ml."""
        if age_group not in self.consumption_rates:
            raise ValidationError(message=f"Invalid age group: {age_group}", field="age_group")
        if chicken_count < 0:
            raise ValidationError(message="Chicken count cannot be negative", field="chicken_count")
        return self.consumption_rates[age_group] * chicken_count

    def calculate_pump_run_time(self, ml: float, flow_rate: Optional[float] = None) -> float:
        return calculate_pump_run_time(ml, self.default_flow_rate if flow_rate is None else flow_rate)

    def get_settings(self) -> Dict[str, Any]:
        """
        Current water settings with defaults for missing fields.

        Returns:
            Dict with flowRate, fillDuration and autoEnabled
        """
        raw = self.firebase_client.get(self.settings_path, {})
        raw = raw if isinstance(raw, dict) else {}

        flow_rate = parse_number(raw.get("flowRate"))
        fill_duration = parse_number(raw.get("fillDuration"))

        return {
            "flowRate": flow_rate if flow_rate and flow_rate > 0 else self.default_flow_rate,
            "fillDuration": fill_duration if fill_duration and fill_duration > 0 else self.default_fill_duration,
            "autoEnabled": parse_bool(raw.get("autoEnabled")),
            "lastFillTime": parse_number(raw.get("lastFillTime"))
        }

    def update_settings(
        self,
        flow_rate: Optional[float] = None,
        fill_duration: Optional[float] = None,
        auto_enabled: Optional[bool] = None
    ) -> Dict[str, Any]:
        """
        Update the water settings fields that are given.

        Returns:
            Dict with 'success', 'message' and the updated fields
        """
        updates = {}
        if flow_rate is not None:
            if flow_rate <= 0:
                raise ValidationError(message="Flow rate must be positive", field="flow_rate")
            updates["flowRate"] = flow_rate
        if fill_duration is not None:
            if fill_duration <= 0:
                raise ValidationError(message="Fill duration must be positive", field="fill_duration")
            updates["fillDuration"] = fill_duration
        if auto_enabled is not None:
            updates["autoEnabled"] = bool(auto_enabled)

        if not updates:
            raise ValidationError(message="No water setting to update")

        try:
            self.firebase_client.update(self.settings_path, updates)
        except Exception as e:
            logger.error(f"Error updating water settings: {str(e)}")
            return self._write_failed_result(e)

        logger.info(f"Water settings updated: {updates}")
        return {
            "success": True,
            "message": "Water settings updated",
            "updated": updates
        }

    def dispense(self, ml: float, flow_rate: Optional[float] = None) -> Dict[str, Any]:
        """
        Dispense an amount of water.

        Args:
            ml: Volume in ml
            flow_rate: Pump flow rate in ml/s (the configured rate when omitted)

        Returns:
            Dict with 'success', 'message' and, on success, the volume, the
            pump time and the keys of the written records

        Raises:
            ValidationError: non-positive volume or flow rate
        """
        if flow_rate is None:
            flow_rate = self.get_settings()["flowRate"]

        if ml <= 0:
            raise ValidationError(message="Please enter a valid amount of water", field="ml")

        duration = calculate_pump_run_time(ml, flow_rate)
        # The firmware reads fillDuration as an int
        device_duration = max(1, int(duration + 0.5))

        rejected = self.try_begin(
            device_message="The water pump is currently active. Please wait for it to complete.",
            busy_message="A watering operation is already in progress. Please wait."
        )
        if rejected:
            return rejected

        logger.info(f"Dispensing {ml:g}ml of water ({duration:.2f}s at {flow_rate:g}ml/s)")

        try:
            timestamp = self.now()

            self._saved_fill_duration = self.firebase_client.get(self.fill_duration_path)
            self._restore_fill_duration = True
            self.firebase_client.update(self.settings_path, {
                "flowRate": flow_rate,
                "fillDuration": device_duration,
                "lastFillTime": timestamp
            })

            event_key = self.log_event(
                "watering",
                f"Dispensed {ml:g}ml of water ({duration:.1f}s pump time)",
                timestamp
            )

            log_key = self.firebase_client.push(self.logs_path, {
                "timestamp": timestamp,
                "volumeDispensed": ml,
                "durationSeconds": duration
            })

            self.firebase_client.set(self.trigger_path, True)
            logger.info("Water command sent to device")

        except Exception as e:
            return self.abort(e)

        reset_in = duration + self.reset_buffer
        self.schedule_reset(reset_in)

        return {
            "success": True,
            "message": f"Successfully dispensed {ml:g}ml of water",
            "volume_dispensed": ml,
            "duration_seconds": duration,
            "device_duration": device_duration,
            "flow_rate": flow_rate,
            "reset_in": reset_in,
            "event_key": event_key,
            "log_key": log_key,
            "timestamp": timestamp
        }

    def trigger_manual_fill(self) -> Dict[str, Any]:
        """
        Raise the water fill trigger for the configured fill duration.

        The device runs the pump for /waterSettings/fillDuration; the trigger
        itself is reset after a short delay.
        """
        rejected = self.try_begin(
            device_message="The water pump is currently active. Please wait for it to complete.",
            busy_message="A watering operation is already in progress. Please wait."
        )
        if rejected:
            return rejected

        try:
            settings = self.get_settings()
            self.firebase_client.set(self.trigger_path, True)
            logger.info("Manual water fill triggered")
        except Exception as e:
            return self.abort(e)

        self.schedule_reset(self.fill_reset_delay)

        fill_duration = settings["fillDuration"]
        return {
            "success": True,
            "message": "Manual water fill triggered",
            "fill_duration": fill_duration,
            "estimated_volume": fill_duration * settings["flowRate"],
            "reset_in": self.fill_reset_delay
        }
