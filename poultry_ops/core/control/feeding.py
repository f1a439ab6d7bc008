"""
Feeder control: grams to servo time, feed sequence and feeding logs.
"""
import logging
from typing import Any, Dict, Optional

from poultry_ops.infrastructure.exceptions import ValidationError
from .base_sender import BaseCommandSender

logger = logging.getLogger(__name__)


def _format_amount(value: float) -> str:
    return f"{value:g}"


class FeedingController(BaseCommandSender):
    """
    Sends feed commands to the feeder servo.

    A dispense writes, in order: the trigger reset, /feedingSettings,
    /controls/feedDuration, an /events record, a /feedingLogs record and
    finally the trigger. The trigger is forced back to false after the servo
    time plus the reset buffer.
    """

    def __init__(self, **kwargs):
        super().__init__(actuator_type="feeder", trigger_name="feed", **kwargs)

        self.feeding_rates = self.config.get('calibration.feeding_rates', {})
        self.seconds_per_gram = float(self.config.get('calibration.servo_open_time_per_gram', 0.02))

        self.duration_path = self.config.path('controls', 'feed_duration')
        self.settings_path = self.config.path('settings', 'feeding_settings')
        self.logs_path = self.config.path('logs', 'feeding')

    def _check_age_group(self, age_group: str) -> None:
        if age_group not in self.feeding_rates:
            raise ValidationError(
                message=f"Invalid age group: {age_group}. Valid groups: {', '.join(self.feeding_rates)}",
                field="age_group"
            )

    def calculate_recommended_grams(self, age_group: str, chicken_count: int) -> float:
        """
        Daily feed for a flock.

        Args:
            age_group: chick, grower or adult
            chicken_count: Number of birds

        Returns:
            Grams of feed
        """
        self._check_age_group(age_group)
        if chicken_count < 0:
            raise ValidationError(message="Chicken count cannot be negative", field="chicken_count")
        return self.feeding_rates[age_group] * chicken_count

    def calculate_servo_open_time(self, grams: float) -> float:
        """Seconds the servo stays open to dispense grams."""
        if grams < 0:
            raise ValidationError(message="Feed amount cannot be negative", field="grams")
        return grams * self.seconds_per_gram

    def get_settings(self) -> Dict[str, Any]:
        """Last saved feeding settings (age group, chicken count, last feed time)."""
        settings = self.firebase_client.get(self.settings_path, {})
        return settings if isinstance(settings, dict) else {}

    def dispense(
        self,
        age_group: str,
        chicken_count: int,
        grams: Optional[float] = None
    ) -> Dict[str, Any]:
        """
        Dispense feed.

        Args:
            age_group: chick, grower or adult
            chicken_count: Number of birds
            grams: Custom amount; the recommended amount is used when omitted

        Returns:
            Dict with 'success', 'message' and, on success, the dispensed
            amount, the servo time and the keys of the written records

        Raises:
            ValidationError: invalid age group, count or amount
        """
        recommended = grams is None
        if recommended:
            grams = self.calculate_recommended_grams(age_group, chicken_count)
        else:
            self._check_age_group(age_group)

        if grams <= 0:
            raise ValidationError(message="Please enter a valid amount of feed", field="grams")

        servo_open_time = self.calculate_servo_open_time(grams)

        rejected = self.try_begin(
            device_message="The feeder is currently active. Please wait for it to complete.",
            busy_message="A feeding operation is already in progress. Please wait."
        )
        if rejected:
            return rejected

        feed_type = "recommended" if recommended else "custom"
        logger.info(f"Feeding with {_format_amount(grams)}g ({servo_open_time}s, {feed_type} amount)")

        try:
            # The device only reacts to a false -> true transition
            self.reset_trigger()
            self.settle()

            timestamp = self.now()

            self.firebase_client.set(self.settings_path, {
                "ageGroup": age_group,
                "chickenCount": chicken_count,
                "lastFeedTime": timestamp
            })

            self.firebase_client.set(self.duration_path, servo_open_time)

            event_key = self.log_event(
                "feeding",
                f"Dispensed {_format_amount(grams)}g of feed for {chicken_count} {age_group} chickens "
                f"({feed_type} amount)",
                timestamp
            )

            log_key = self.firebase_client.push(self.logs_path, {
                "timestamp": timestamp,
                "gramsDispensed": grams,
                "ageGroup": age_group,
                "chickenCount": chicken_count,
                "servoOpenTime": servo_open_time,
                "feedType": feed_type
            })

            self.firebase_client.set(self.trigger_path, True)
            logger.info("Feed command sent to device")

        except Exception as e:
            return self.abort(e)

        reset_in = servo_open_time + self.reset_buffer
        self.schedule_reset(reset_in)

        return {
            "success": True,
            "message": f"Successfully dispensed {_format_amount(grams)}g of feed",
            "grams_dispensed": grams,
            "servo_open_time": servo_open_time,
            "feed_type": feed_type,
            "reset_in": reset_in,
            "event_key": event_key,
            "log_key": log_key,
            "timestamp": timestamp
        }
