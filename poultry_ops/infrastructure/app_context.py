"""
Application context: operator session and theme preferences.
"""
import logging
import threading
from datetime import datetime
from typing import Any, Dict, Optional

from poultry_ops.infrastructure.exceptions import AuthenticationError, ValidationError

logger = logging.getLogger(__name__)

THEMES = ("light", "dark")
THEME_MODES = ("auto", "manual")


def theme_for_hour(hour: int) -> str:
    """Light from 06:00 to 17:59, dark otherwise."""
    return "light" if 6 <= hour < 18 else "dark"


class AppContext:
    """
    Holds the dashboard's global state for the lifetime of the service.

    The state is a single operator session and the theme preference. It is
    loaded from Redis in start() and written back on every change; without
    Redis it lives in memory only.
    """

    def __init__(self, config=None, redis_client=None):
        if config is None:
            from poultry_ops.infrastructure import get_service_factory
            config = get_service_factory().get_config_loader()

        self.config = config
        self.redis_client = redis_client
        self.key_prefix = self.config.get('redis.key_prefixes.preferences', 'prefs:')

        self._lock = threading.Lock()
        self._started = False
        self.authenticated = False
        self.username: Optional[str] = None
        self.theme_mode = "auto"
        self.manual_theme = "light"

    def _key(self, name: str) -> str:
        return f"{self.key_prefix}{name}"

    def _load(self) -> None:
        if self.redis_client is None:
            return

        session = self.redis_client.get(self._key("session")) or {}
        theme = self.redis_client.get(self._key("theme")) or {}

        self.authenticated = bool(session.get("authenticated", False))
        self.username = session.get("username")
        if theme.get("mode") in THEME_MODES:
            self.theme_mode = theme["mode"]
        if theme.get("theme") in THEMES:
            self.manual_theme = theme["theme"]

    def _save(self) -> None:
        if self.redis_client is None:
            return

        self.redis_client.set(self._key("session"), {
            "authenticated": self.authenticated,
            "username": self.username
        })
        self.redis_client.set(self._key("theme"), {
            "mode": self.theme_mode,
            "theme": self.manual_theme
        })

    def start(self) -> None:
        """Load persisted preferences."""
        with self._lock:
            self._load()
            self._started = True
        logger.info(f"Application context started (theme mode: {self.theme_mode})")

    def close(self) -> None:
        """Persist preferences and release the context."""
        with self._lock:
            if not self._started:
                return
            self._save()
            self._started = False
        logger.info("Application context closed")

    def login(self, username: str, password: str) -> Dict[str, Any]:
        """
        Check the operator credentials.

        Raises:
            AuthenticationError: wrong username or password
        """
        expected = self.config.get_dashboard_credentials()
        if username != expected['username'] or password != expected['password']:
            logger.warning(f"Failed login attempt for user '{username}'")
            raise AuthenticationError(message="Invalid username or password")

        with self._lock:
            self.authenticated = True
            self.username = username
            self._save()

        logger.info(f"User '{username}' logged in")
        return self.session()

    def logout(self) -> Dict[str, Any]:
        with self._lock:
            self.authenticated = False
            self.username = None
            self._save()
        logger.info("User logged out")
        return self.session()

    def session(self) -> Dict[str, Any]:
        return {"authenticated": self.authenticated, "username": self.username}

    def require_auth(self) -> None:
        if not self.authenticated:
            raise AuthenticationError(message="Not logged in")

    def current_theme(self, now: Optional[datetime] = None) -> str:
        if self.theme_mode == "manual":
            return self.manual_theme
        now = now or datetime.now()
        return theme_for_hour(now.hour)

    def theme(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        return {"theme": self.current_theme(now), "mode": self.theme_mode}

    def set_theme(self, theme: str) -> Dict[str, Any]:
        """Choose a theme; switches to manual mode."""
        if theme not in THEMES:
            raise ValidationError(message=f"Invalid theme: {theme}", field="theme")
        with self._lock:
            self.manual_theme = theme
            self.theme_mode = "manual"
            self._save()
        return self.theme()

    def toggle_theme(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        return self.set_theme("dark" if self.current_theme(now) == "light" else "light")

    def set_theme_mode(self, mode: str) -> Dict[str, Any]:
        if mode not in THEME_MODES:
            raise ValidationError(message=f"Invalid theme mode: {mode}", field="mode")
        with self._lock:
            self.theme_mode = mode
            self._save()
        return self.theme()
