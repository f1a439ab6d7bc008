"""
Key-path access to the Firebase Realtime Database shared with the coop firmware.
"""
import logging
from typing import Any, Callable, Dict, List, Optional
import firebase_admin
from firebase_admin import db

from poultry_ops.infrastructure.exceptions import DataAccessError, StoreUnavailableError

logger = logging.getLogger(__name__)


class FirebaseClient:
    """
    Reads, writes and subscribes to key paths such as "controls/feed".

    Every failed operation is logged and raised as DataAccessError, so
    callers only need to handle the service exception hierarchy.
    """

    def __init__(self, base_path: str = "", app: Optional[firebase_admin.App] = None):
        """
        Args:
            base_path: Prefix prepended to every key path
            app: Firebase app (the default app when omitted)

        Raises:
            StoreUnavailableError: no Firebase app is initialized
        """
        self.base_path = base_path.strip("/") if base_path else ""
        try:
            self.app = app or firebase_admin.get_app()
        except ValueError:
            raise StoreUnavailableError(
                message="Firebase app is not initialized. Call init_firebase_connection() first.",
                service_name="firebase"
            )

    def _reference(self, path: Optional[str] = None) -> db.Reference:
        parts = [part for part in (self.base_path, (path or "").strip("/")) if part]
        return db.reference("/" + "/".join(parts), app=self.app)

    def _run(self, operation: str, path: str, call: Callable[[db.Reference], Any]) -> Any:
        try:
            result = call(self._reference(path))
        except Exception as e:
            logger.error(f"Firebase {operation} failed at {path}: {str(e)}")
            raise DataAccessError(
                message=f"Failed to {operation} {path}: {str(e)}",
                source="firebase",
                details={"operation": operation, "path": path}
            )
        logger.debug(f"Firebase {operation} at {path}")
        return result

    def get(self, path: str, default: Any = None) -> Any:
        """Value at a path, or default when nothing is stored."""
        data = self._run("read", path, lambda ref: ref.get())
        return data if data is not None else default

    def get_latest(self, path: str, limit: int = 100, order_by: str = "timestamp") -> Dict[str, Any]:
        """
        Last records of a keyed list ordered by a child field.

        Args:
            path: Key path of the list
            limit: Maximum number of records
            order_by: Child used for ordering

        Returns:
            Dict of key -> record (empty when nothing is stored)
        """
        data = self._run("query", path, lambda ref: ref.order_by_child(order_by).limit_to_last(limit).get())
        return dict(data) if data else {}

    def set(self, path: str, data: Any) -> None:
        self._run("set", path, lambda ref: ref.set(data))

    def update(self, path: str, data: Dict[str, Any]) -> None:
        self._run("update", path, lambda ref: ref.update(data))

    def push(self, path: str, data: Any) -> str:
        """Append a record under a generated key and return the key."""
        return self._run("push", path, lambda ref: ref.push(data)).key

    def delete(self, path: str) -> None:
        self._run("delete", path, lambda ref: ref.delete())

    def listen(self, path: str, callback: Callable[[db.Event], None]) -> db.ListenerRegistration:
        """
        Subscribe to changes below a path.

        The callback runs on a firebase_admin listener thread. Exceptions
        raised by it are logged so a bad payload never kills the listener.

        Args:
            path: Key path
            callback: Called with each db.Event

        Returns:
            Registration; call close() to unsubscribe

        Raises:
            StoreUnavailableError: the subscription could not be opened
        """
        def _safe_callback(event: db.Event) -> None:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Listener callback error at {path}: {str(e)}", exc_info=True)

        try:
            registration = self._reference(path).listen(_safe_callback)
        except Exception as e:
            logger.error(f"Firebase listen error at {path}: {str(e)}")
            raise StoreUnavailableError(message=f"Failed to subscribe to {path}: {str(e)}", service_name="firebase")
        logger.info(f"Listening for changes at path: {path}")
        return registration


def records_from_snapshot(data: Any) -> List[Dict[str, Any]]:
    """
    Convert a keyed snapshot into a list of records with their key under 'id'.

    Arrays (which the database returns for small integer keys) are handled
    the same way, skipping empty slots.
    """
    if not data:
        return []

    if isinstance(data, list):
        items = [(str(index), value) for index, value in enumerate(data) if value is not None]
    elif isinstance(data, dict):
        items = list(data.items())
    else:
        return []

    result = []
    for key, value in items:
        if isinstance(value, dict):
            record = dict(value)
            record['id'] = key
            result.append(record)
        else:
            result.append({'id': key, 'value': value})
    return result
