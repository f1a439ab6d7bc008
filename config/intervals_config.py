"""
Timing configuration for timers and periodic tasks.
"""

TASK_INTERVALS = {
    # Seconds added to the actuation time before a trigger is reset
    "dispense_reset_buffer": 5,

    # Reset delay for the manual water fill trigger
    "water_fill_reset": 2,

    # Pause between resetting a trigger and starting a new sequence
    "command_settle_delay": 0.5,

    # How long an analytics result stays cached
    "analytics_refresh": 60,

    # Camera snapshots per second while streaming
    "camera_fps": 5,
}

# Lower bounds for values overridden from the environment
MIN_INTERVALS = {
    "dispense_reset_buffer": 1,
    "water_fill_reset": 1,
    "command_settle_delay": 0,
    "analytics_refresh": 5,
    "camera_fps": 1,
}
