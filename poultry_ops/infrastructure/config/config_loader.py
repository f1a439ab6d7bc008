"""
Central configuration loader for the service.
"""
import os
import logging
from typing import Any, Dict, Optional
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Python weekday() numbering: Monday == 0 ... Sunday == 6
DAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


class ConfigLoader:
    """
    Loads and serves the application configuration.
    """

    def __init__(self, load_env: bool = True, env_file: Optional[str] = None):
        """
        Initialize the loader.

        Args:
            load_env: Load environment variables from .env
            env_file: Path to the .env file
        """
        self.config = {}

        if load_env:
            load_dotenv(dotenv_path=env_file)

        self._load_all_configs()

    def _load_all_configs(self) -> None:
        """Load every config module under config/."""
        from config.database_paths import (
            SENSOR_PATHS, ALERT_PATHS, CONTROL_PATHS, DEVICE_STATE_PATHS,
            LOG_PATHS, SETTINGS_PATHS, LOG_VALUE_FIELDS
        )
        self.config['paths'] = {
            'sensors': SENSOR_PATHS,
            'alerts': ALERT_PATHS,
            'controls': CONTROL_PATHS,
            'device_states': DEVICE_STATE_PATHS,
            'logs': LOG_PATHS,
            'settings': SETTINGS_PATHS,
            'value_fields': LOG_VALUE_FIELDS
        }

        from config.calibration_config import (
            FEEDING_RATES, SERVO_OPEN_TIME_PER_GRAM, WATER_CONSUMPTION_RATES,
            DEFAULT_WATER_FLOW_RATE, DEFAULT_WATER_FILL_DURATION, HYDRATION_THRESHOLDS,
            AGE_GROUP_LABELS
        )
        self.config['calibration'] = {
            'feeding_rates': FEEDING_RATES,
            'servo_open_time_per_gram': SERVO_OPEN_TIME_PER_GRAM,
            'water_consumption_rates': WATER_CONSUMPTION_RATES,
            'water_flow_rate': DEFAULT_WATER_FLOW_RATE,
            'water_fill_duration': DEFAULT_WATER_FILL_DURATION,
            'hydration_thresholds': HYDRATION_THRESHOLDS,
            'age_group_labels': AGE_GROUP_LABELS
        }

        from config.redis_config import KEY_PREFIXES, EXPIRATION
        self.config['redis'] = {
            'key_prefixes': KEY_PREFIXES,
            'expiration': EXPIRATION
        }

        from config.intervals_config import TASK_INTERVALS, MIN_INTERVALS
        self.config['intervals'] = {
            'task_intervals': TASK_INTERVALS,
            'min_intervals': MIN_INTERVALS
        }

        logger.info(f"Loaded configuration modules: {', '.join(self.config.keys())}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a value by dotted key.

        Args:
            key: Dotted key (e.g. 'paths.controls.feed')
            default: Value returned when the key is missing

        Returns:
            The configured value
        """
        if not key:
            return default

        current = self.config
        for part in key.split('.'):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default

        return current

    def path(self, group: str, name: str) -> str:
        """Return a database key path, e.g. path('controls', 'feed')."""
        value = self.get(f'paths.{group}.{name}')
        if value is None:
            raise KeyError(f"No database path configured for {group}.{name}")
        return value

    def get_redis_connection_params(self) -> Dict[str, Any]:
        return {
            'host': os.getenv('REDIS_HOST', 'localhost'),
            'port': int(os.getenv('REDIS_PORT', 6379)),
            'db': int(os.getenv('REDIS_DB', 0)),
            'password': os.getenv('REDIS_PASSWORD', None)
        }

    def get_firebase_credentials_path(self) -> str:
        return os.getenv('FIREBASE_CREDENTIALS_PATH', './config/firebase-credentials.json')

    def get_firebase_database_url(self) -> str:
        return os.getenv('FIREBASE_DATABASE_URL', '')

    def get_dashboard_credentials(self) -> Dict[str, str]:
        """
        Return the single operator login.

        Returns:
            Dict with username and password
        """
        return {
            'username': os.getenv('DASHBOARD_USERNAME', 'admin'),
            'password': os.getenv('DASHBOARD_PASSWORD', 'admin123')
        }

    def get_water_flow_rate(self) -> float:
        """Default pump flow rate in ml/s, overridable with WATER_FLOW_RATE."""
        env_value = os.getenv('WATER_FLOW_RATE')
        if env_value:
            try:
                return float(env_value)
            except ValueError:
                logger.warning(f"Invalid WATER_FLOW_RATE value: {env_value}")
        return float(self.get('calibration.water_flow_rate', 100))

    def get_week_start(self) -> int:
        """
        Return the first day of the week as a Python weekday number.

        WEEK_START_DAY accepts a day name ('sunday') or a number where
        0 is Sunday, matching the dashboard's day order.
        """
        env_value = os.getenv('WEEK_START_DAY', 'sunday').strip().lower()

        if env_value in DAY_NAMES:
            return DAY_NAMES.index(env_value)

        try:
            sunday_based = int(env_value)
        except ValueError:
            logger.warning(f"Invalid WEEK_START_DAY value: {env_value}, using sunday")
            return 6

        return (sunday_based - 1) % 7

    def get_interval(self, task_type: str, default: float = 60) -> float:
        """
        Return the interval for a task.

        The environment variable <TASK>_INTERVAL wins over the value in
        intervals_config.py; either is clamped to the configured minimum.

        Args:
            task_type: Task name (dispense_reset_buffer, analytics_refresh, ...)
            default: Fallback when nothing is configured

        Returns:
            Interval in seconds (or frames per second for camera_fps)
        """
        env_key = f"{task_type.upper()}_INTERVAL"
        env_value = os.getenv(env_key)

        if env_value:
            try:
                interval = float(env_value)
                min_interval = self.get(f'intervals.min_intervals.{task_type}', 0)

                if interval < min_interval:
                    logger.warning(
                        f"Interval from env {env_key}={interval}s is below minimum {min_interval}s. "
                        f"Using minimum value."
                    )
                    return min_interval

                return interval

            except ValueError:
                logger.warning(f"Invalid interval value in environment variable {env_key}: {env_value}")

        config_interval = self.get(f'intervals.task_intervals.{task_type}')

        if config_interval is not None:
            return config_interval

        logger.debug(f"No interval configured for task '{task_type}', using default: {default}s")
        return default
