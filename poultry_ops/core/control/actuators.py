"""
Manual control of the fan, heat lamp and pump relays and of the automation flag.
"""
import logging
from typing import Any, Dict, Optional

from poultry_ops.core.parsing import parse_bool
from poultry_ops.infrastructure.exceptions import ValidationError

logger = logging.getLogger(__name__)

ACTUATORS = ("fan", "heat", "pump")


class ActuatorController:
    """
    Writes desired relay states to /controls and reads the actual ones back.

    The firmware reports relay states under /deviceStates with active-low
    logic, so a stored false means the relay is on.
    """

    def __init__(self, firebase_client=None, config=None, live_state=None):
        if firebase_client is None or config is None:
            from poultry_ops.infrastructure import get_service_factory
            factory = get_service_factory()
            config = config if config is not None else factory.get_config_loader()
            firebase_client = firebase_client if firebase_client is not None else factory.create_firebase_client()

        self.config = config
        self.firebase_client = firebase_client
        self.live_state = live_state

        self.device_states_path = self.config.path('device_states', 'root')
        self.automation_path = self.config.path('controls', 'automation_enabled')

    def _check_name(self, name: str) -> None:
        if name not in ACTUATORS:
            raise ValidationError(
                message=f"Invalid actuator: {name}. Valid actuators: {', '.join(ACTUATORS)}",
                field="name"
            )

    def get_states(self) -> Dict[str, Optional[bool]]:
        """
        Actual relay states (True = on); None when the device never reported one.
        """
        if self.live_state is not None and self.live_state.has_device_states():
            return self.live_state.device_states()

        raw = self.firebase_client.get(self.device_states_path, {})
        raw = raw if isinstance(raw, dict) else {}
        return {
            name: (not parse_bool(raw[name])) if name in raw else None
            for name in ACTUATORS
        }

    def set_actuator(self, name: str, state: Optional[bool] = None) -> Dict[str, Any]:
        """
        Switch a relay.

        Args:
            name: fan, heat or pump
            state: Desired state; toggles the actual state when omitted

        Returns:
            Dict with 'success', 'message' and the requested state
        """
        self._check_name(name)

        if state is None:
            current = self.get_states().get(name)
            state = not current

        path = self.config.path('controls', name)
        try:
            self.firebase_client.set(path, state)
        except Exception as e:
            logger.error(f"Error updating {name} state: {str(e)}")
            return {
                "success": False,
                "message": f"Failed to update {name}: {str(e)}",
                "error_code": "write_failed"
            }

        logger.info(f"{name} set to {'ON' if state else 'OFF'}")
        return {
            "success": True,
            "message": f"{name.capitalize()} turned {'ON' if state else 'OFF'}",
            "actuator": name,
            "state": state
        }

    def get_automation(self) -> bool:
        if self.live_state is not None:
            observed = self.live_state.control_flag("automation_enabled")
            if observed is not None:
                return observed
        return parse_bool(self.firebase_client.get(self.automation_path))

    def set_automation(self, enabled: Optional[bool] = None) -> Dict[str, Any]:
        """
        Enable or disable automatic control; toggles when enabled is omitted.
        """
        if enabled is None:
            enabled = not self.get_automation()

        try:
            self.firebase_client.set(self.automation_path, enabled)
        except Exception as e:
            logger.error(f"Error updating automation state: {str(e)}")
            return {
                "success": False,
                "message": f"Failed to update automation: {str(e)}",
                "error_code": "write_failed"
            }

        logger.info(f"Automation {'enabled' if enabled else 'disabled'}")
        return {
            "success": True,
            "message": f"Automation {'enabled' if enabled else 'disabled'}",
            "automation_enabled": enabled
        }
