"""
Calibration constants for the feeder servo and the water pump.
"""

# Feed consumption per bird per day, in grams
FEEDING_RATES = {
    "chick": 50,    # 0-8 weeks
    "grower": 100,  # 8-20 weeks
    "adult": 150,   # 20+ weeks
}

# 1 second of open servo dispenses 50 g
SERVO_OPEN_TIME_PER_GRAM = 0.02

# Water consumption per bird per day, in ml
WATER_CONSUMPTION_RATES = {
    "chick": 80,
    "grower": 150,
    "adult": 200,
}

# ml per second through the pump
DEFAULT_WATER_FLOW_RATE = 100

# Default manual fill duration (seconds)
DEFAULT_WATER_FILL_DURATION = 30

# Daily water per bird (ml) below which hydration is flagged
HYDRATION_THRESHOLDS = {
    "warning": 180,
    "alert": 120,
}

AGE_GROUP_LABELS = {
    "chick": "Chicks (0-8 weeks)",
    "grower": "Growers (8-20 weeks)",
    "adult": "Adults (20+ weeks)",
}
