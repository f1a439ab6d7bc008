"""
Factory creating and holding the main components of the service.
"""
import logging
from typing import Any, Dict, Optional

from .config.config_loader import ConfigLoader
from .database import RedisClient, FirebaseClient
from .database.connections import get_redis_client, init_firebase_connection
from .exceptions import ConfigurationError, StoreUnavailableError
from .timers import TimerRegistry
from .app_context import AppContext

logger = logging.getLogger(__name__)


class ServiceFactory:
    """
    Creates the service dependencies once and shares them.
    """

    _instance = None

    def __new__(cls):
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super(ServiceFactory, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        logger.info("Initializing ServiceFactory")
        self.config_loader = ConfigLoader()
        self.services: Dict[str, Any] = {}
        self.connection_errors: Dict[str, str] = {}
        self._initialized = True

    def get_config_loader(self) -> ConfigLoader:
        return self.config_loader

    def create_redis_client(self) -> RedisClient:
        """
        Return the shared RedisClient.

        Raises:
            StoreUnavailableError: Redis cannot be reached
        """
        if 'redis_client' not in self.services:
            self.services['redis_client'] = get_redis_client(self.config_loader)
            logger.info("Created Redis client")
        return self.services['redis_client']

    def get_optional_redis_client(self) -> Optional[RedisClient]:
        """The Redis client, or None when Redis is unavailable (caching disabled)."""
        try:
            client = self.create_redis_client()
        except StoreUnavailableError as e:
            if 'redis' not in self.connection_errors:
                logger.warning(f"Redis unavailable, running without cache: {e.message}")
            self.connection_errors['redis'] = e.message
            return None
        self.connection_errors.pop('redis', None)
        return client

    def create_firebase_client(self, base_path: str = "") -> FirebaseClient:
        """
        Return a FirebaseClient for a base path.

        Raises:
            StoreUnavailableError: the Firebase app is not initialized
        """
        service_key = f'firebase_client_{base_path or ""}'
        if service_key not in self.services:
            self.services[service_key] = FirebaseClient(base_path or "")
            logger.info(f"Created Firebase client with base path: '{base_path or ''}'")
        return self.services[service_key]

    def create_timer_registry(self) -> TimerRegistry:
        if 'timer_registry' not in self.services:
            self.services['timer_registry'] = TimerRegistry("command-resets")
        return self.services['timer_registry']

    def create_app_context(self) -> AppContext:
        if 'app_context' not in self.services:
            context = AppContext(self.config_loader, redis_client=self.get_optional_redis_client())
            context.start()
            self.services['app_context'] = context
        return self.services['app_context']

    def create_live_state_mirror(self):
        if 'live_state' not in self.services:
            from poultry_ops.core.monitoring import LiveStateMirror
            self.services['live_state'] = LiveStateMirror(
                firebase_client=self.create_firebase_client(),
                config=self.config_loader,
                redis_client=self.get_optional_redis_client()
            )
        return self.services['live_state']

    def _create_sender(self, service_key: str, sender_class):
        if service_key not in self.services:
            self.services[service_key] = sender_class(
                firebase_client=self.create_firebase_client(),
                config=self.config_loader,
                timers=self.create_timer_registry(),
                live_state=self.services.get('live_state')
            )
        return self.services[service_key]

    def create_feeding_controller(self):
        from poultry_ops.core.control import FeedingController
        return self._create_sender('feeding_controller', FeedingController)

    def create_water_controller(self):
        from poultry_ops.core.control import WaterController
        return self._create_sender('water_controller', WaterController)

    def create_actuator_controller(self):
        if 'actuator_controller' not in self.services:
            from poultry_ops.core.control import ActuatorController
            self.services['actuator_controller'] = ActuatorController(
                firebase_client=self.create_firebase_client(),
                config=self.config_loader,
                live_state=self.services.get('live_state')
            )
        return self.services['actuator_controller']

    def create_schedule_manager(self):
        if 'schedule_manager' not in self.services:
            from poultry_ops.core.control import HourlyScheduleManager
            self.services['schedule_manager'] = HourlyScheduleManager(
                firebase_client=self.create_firebase_client(),
                config=self.config_loader
            )
        return self.services['schedule_manager']

    def create_event_log_view(self):
        if 'event_log_view' not in self.services:
            from poultry_ops.core.monitoring import EventLogView
            self.services['event_log_view'] = EventLogView(
                firebase_client=self.create_firebase_client(),
                config=self.config_loader
            )
        return self.services['event_log_view']

    def create_hydration_monitor(self):
        if 'hydration_monitor' not in self.services:
            from poultry_ops.core.monitoring import HydrationMonitor
            self.services['hydration_monitor'] = HydrationMonitor(
                firebase_client=self.create_firebase_client(),
                config=self.config_loader
            )
        return self.services['hydration_monitor']

    def create_history_service(self):
        if 'history_service' not in self.services:
            from poultry_ops.core.analytics import HistoryService
            self.services['history_service'] = HistoryService(
                firebase_client=self.create_firebase_client(),
                config=self.config_loader
            )
        return self.services['history_service']

    def create_analytics_service(self):
        if 'analytics_service' not in self.services:
            from poultry_ops.core.analytics import AnalyticsService
            self.services['analytics_service'] = AnalyticsService(
                firebase_client=self.create_firebase_client(),
                config=self.config_loader,
                redis_client=self.get_optional_redis_client()
            )
        return self.services['analytics_service']

    def create_camera_stream(self):
        if 'camera_stream' not in self.services:
            from poultry_ops.adapters.camera import CameraStream
            self.services['camera_stream'] = CameraStream(
                firebase_client=self.create_firebase_client(),
                config=self.config_loader
            )
        return self.services['camera_stream']

    def init_all_services(self) -> None:
        """
        Create every component and start the live state mirror.

        The mirror is created first so the controllers observe device flags
        through it.

        Raises:
            StoreUnavailableError: the realtime database is unavailable
        """
        self.create_app_context()
        self.create_live_state_mirror().start()
        self.create_feeding_controller()
        self.create_water_controller()
        self.create_actuator_controller()
        self.create_schedule_manager()
        self.create_event_log_view()
        self.create_hydration_monitor()
        self.create_history_service()
        self.create_analytics_service()
        self.create_camera_stream()
        self.connection_errors.pop('firebase', None)
        logger.info("All services initialized")

    def connect(self) -> bool:
        """
        Connect to the stores and initialize every service.

        Failures are recorded in connection_errors instead of raised, so the
        API can start and report the connection error state.

        Returns:
            bool: whether the realtime database is available
        """
        try:
            init_firebase_connection(self.config_loader)
            self.get_optional_redis_client()
            self.init_all_services()
        except (ConfigurationError, StoreUnavailableError) as e:
            logger.error(f"Store unavailable: {e.message}")
            self.connection_errors['firebase'] = e.message
            return False
        return True

    def reconnect(self) -> bool:
        """Tear the services down and connect again."""
        logger.info("Reconnecting to the stores")
        self.shutdown()
        return self.connect()

    def shutdown(self) -> None:
        """
        Release every component.

        Pending trigger resets run immediately so no actuator stays latched
        and no timer fires after teardown.
        """
        camera = self.services.get('camera_stream')
        if camera is not None:
            camera.stop()

        mirror = self.services.get('live_state')
        if mirror is not None:
            mirror.close()

        timers = self.services.get('timer_registry')
        if timers is not None:
            timers.shutdown(run_pending=True)

        context = self.services.get('app_context')
        if context is not None:
            context.close()

        self.services.clear()
        logger.info("All services shut down")

    def connection_status(self) -> Dict[str, Any]:
        """Per-store status for /health."""
        firebase_ok = 'firebase' not in self.connection_errors and 'live_state' in self.services
        return {
            "firebase": "ok" if firebase_ok else "error",
            "redis": "ok" if 'redis' not in self.connection_errors and 'redis_client' in self.services else "error",
            "errors": dict(self.connection_errors)
        }
