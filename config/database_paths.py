"""
Key paths in the Firebase Realtime Database shared with the coop firmware.
"""

# Sensor readings written by the firmware
SENSOR_PATHS = {
    "root": "sensors",
    "temperature": "sensors/temperature",
    "humidity": "sensors/humidity",
    "food_level": "sensors/foodLevel",
    "water_level_main": "sensors/waterLevelMain",
    "water_level_drinker": "sensors/waterLevelDrinker",
}

# Alarm flags written by the firmware (bool, "true"/"false", 1/0)
ALERT_PATHS = {
    "root": "alerts",
}

# Actuator commands written by the dashboard
CONTROL_PATHS = {
    "root": "controls",
    "fan": "controls/fan",
    "heat": "controls/heat",
    "pump": "controls/pump",
    "feed": "controls/feed",
    "feed_duration": "controls/feedDuration",
    "automation_enabled": "controls/automationEnabled",
    "water_fill": "controls/waterFill",
}

# Relay states reported back by the firmware (active-low)
DEVICE_STATE_PATHS = {
    "root": "deviceStates",
}

# Append-only logs
LOG_PATHS = {
    "feeding": "feedingLogs",
    "water": "waterLogs",
    "history": "history",
    "events": "events",
}

# Configuration
SETTINGS_PATHS = {
    "feeding_schedule": "feedingSchedule",
    "water_schedule": "waterSchedule",
    "feeding_settings": "feedingSettings",
    "water_settings": "waterSettings",
    "camera_ip": "settings/cameraIP",
}

# Field carrying the analytics value of each log
LOG_VALUE_FIELDS = {
    "feeding": "gramsDispensed",
    "water": "volumeDispensed",
}
