"""
Base class for the command senders (feeder, water pump).
"""
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from poultry_ops.core.parsing import parse_bool
from poultry_ops.infrastructure.database import FirebaseClient
from poultry_ops.infrastructure.config import ConfigLoader
from poultry_ops.infrastructure.timers import TimerRegistry

logger = logging.getLogger(__name__)


class BaseCommandSender:
    """
    Shared plumbing for actuators driven by a trigger flag.

    A sender owns an in-progress flag. It is set when a sequence starts and
    cleared by the scheduled reset of the trigger, or immediately when a
    write fails. Dependencies left as None are taken from the ServiceFactory.
    """

    def __init__(
        self,
        actuator_type: str,
        trigger_name: str,
        firebase_client: Optional[FirebaseClient] = None,
        config: Optional[ConfigLoader] = None,
        timers: Optional[TimerRegistry] = None,
        live_state: Optional[Any] = None,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        Initialize the sender.

        Args:
            actuator_type: Name used in logs and errors ('feeder', 'water_pump')
            trigger_name: Key of the trigger flag in the controls paths
            firebase_client: Realtime database client
            config: Configuration loader
            timers: Registry owning the reset timers
            live_state: LiveStateMirror used to observe the device trigger
            clock: Returns the current epoch time in seconds
        """
        self.actuator_type = actuator_type
        self.trigger_name = trigger_name

        if firebase_client is None or config is None or timers is None:
            # Lazy import to avoid a circular import
            from poultry_ops.infrastructure import get_service_factory
            factory = get_service_factory()
            config = config if config is not None else factory.get_config_loader()
            firebase_client = firebase_client if firebase_client is not None else factory.create_firebase_client()
            timers = timers if timers is not None else factory.create_timer_registry()

        self.config = config
        self.firebase_client = firebase_client
        self.timers = timers
        self.live_state = live_state
        self._clock = clock or time.time

        self.trigger_path = self.config.path('controls', trigger_name)
        self.events_path = self.config.path('logs', 'events')
        self.reset_buffer = float(self.config.get_interval('dispense_reset_buffer', 5))
        self.settle_delay = float(self.config.get_interval('command_settle_delay', 0.5))

        self._lock = threading.Lock()
        self._in_progress = False
        self._reset_timer_id = None

        logger.info(f"Initialized {self.__class__.__name__} (trigger: {self.trigger_path})")

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    def now(self) -> int:
        """Current time as integer epoch seconds."""
        return int(self._clock())

    def device_active(self) -> bool:
        """
        Whether the device trigger flag is currently observed true.

        The live mirror is used when it has seen the flag; otherwise the flag
        is read once from the database.
        """
        if self.live_state is not None:
            observed = self.live_state.control_flag(self.trigger_name)
            if observed is not None:
                return observed

        return parse_bool(self.firebase_client.get(self.trigger_path))

    def _guard_result(self, message: str) -> Dict[str, Any]:
        logger.warning(f"{self.actuator_type} command rejected: {message}")
        return {
            "success": False,
            "message": message,
            "error_code": "guard_violation"
        }

    def _write_failed_result(self, error: Exception) -> Dict[str, Any]:
        return {
            "success": False,
            "message": f"Failed to send {self.actuator_type} command: {str(error)}",
            "error_code": "write_failed"
        }

    def try_begin(self, device_message: str, busy_message: str) -> Optional[Dict[str, Any]]:
        """
        Claim the in-progress flag.

        Args:
            device_message: Message when the device reports itself active
            busy_message: Message when a sequence of this sender is running

        Returns:
            None when the sequence may start, otherwise a guard result
        """
        with self._lock:
            if self._in_progress:
                return self._guard_result(busy_message)

            if self.device_active():
                return self._guard_result(device_message)

            self._in_progress = True
            return None

    def finish(self) -> None:
        """Release the in-progress flag."""
        with self._lock:
            self._in_progress = False
            self._reset_timer_id = None

    def reset_trigger(self) -> None:
        """Write the trigger flag back to false."""
        self.firebase_client.set(self.trigger_path, False)
        logger.info(f"{self.actuator_type} trigger reset at {self.trigger_path}")

    def settle(self) -> None:
        if self.settle_delay > 0:
            time.sleep(self.settle_delay)

    def schedule_reset(self, delay: float) -> None:
        """
        Reset the trigger after delay seconds, then release the in-progress flag.

        If the timer registry is already shut down the reset runs immediately.
        """
        def _reset() -> None:
            try:
                self.reset_trigger()
            finally:
                self.finish()

        try:
            self._reset_timer_id = self.timers.schedule(delay, _reset)
        except RuntimeError as e:
            logger.warning(f"Could not schedule {self.actuator_type} reset ({str(e)}), resetting now")
            _reset()

    def abort(self, error: Exception) -> Dict[str, Any]:
        """
        Handle a failed write: best-effort trigger reset, release the flag.

        Returns:
            The write_failed result
        """
        logger.error(f"Error sending {self.actuator_type} command: {str(error)}")
        try:
            self.reset_trigger()
        except Exception as reset_error:
            logger.error(f"Error resetting {self.actuator_type} trigger: {str(reset_error)}")
        self.finish()
        return self._write_failed_result(error)

    def log_event(self, event_type: str, description: str, timestamp: int) -> str:
        """Append an audit record to the events log and return its key."""
        return self.firebase_client.push(self.events_path, {
            "timestamp": timestamp,
            "type": event_type,
            "description": description
        })
