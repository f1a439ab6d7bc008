from .feeding import FeedingController
from .watering import WaterController, calculate_pump_run_time
from .actuators import ActuatorController, ACTUATORS
from .schedules import HourlyScheduleManager, SCHEDULE_KINDS

__all__ = [
    "FeedingController",
    "WaterController",
    "calculate_pump_run_time",
    "ActuatorController",
    "ACTUATORS",
    "HourlyScheduleManager",
    "SCHEDULE_KINDS"
]
