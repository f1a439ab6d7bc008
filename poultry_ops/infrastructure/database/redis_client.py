"""
Redis cache used for analytics results, the live snapshot and operator preferences.
"""
import json
import logging
import redis
from typing import Any, List, Optional, Union
from datetime import timedelta

from poultry_ops.infrastructure.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


class RedisClient:
    """
    Stores JSON documents under string keys.

    Cache failures never reach the callers: reads fall back to the default
    and writes report False, so the service keeps working on the realtime
    database alone.
    """

    def __init__(self, host: str, port: int, db: int = 0, password: Optional[str] = None):
        """
        Connect and ping the server.

        Args:
            host: Redis host
            port: Redis port
            db: Redis database number
            password: Redis password (if any)

        Raises:
            StoreUnavailableError: the server did not answer the ping
        """
        self.address = f"{host}:{port}/{db}"
        self.redis = redis.Redis(
            host=host,
            port=port,
            db=db,
            password=password or None,
            decode_responses=True
        )

        try:
            self.redis.ping()
        except redis.RedisError as e:
            logger.error(f"Failed to connect to Redis at {self.address}: {str(e)}")
            raise StoreUnavailableError(message=f"Failed to connect to Redis: {str(e)}", service_name="redis")
        logger.info(f"Redis connection established: {self.address}")

    def set(self, key: str, value: Any, expire: Optional[Union[int, timedelta]] = None) -> bool:
        """
        Store a JSON-serializable value.

        Args:
            key: Cache key
            value: Document to store
            expire: Time to live in seconds or as timedelta

        Returns:
            bool: whether the write succeeded
        """
        if isinstance(expire, timedelta):
            expire = int(expire.total_seconds())

        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.error(f"Value for {key} is not JSON serializable: {str(e)}")
            return False

        try:
            return bool(self.redis.set(key, payload, ex=expire or None))
        except redis.RedisError as e:
            logger.warning(f"Redis write of {key} failed: {str(e)}")
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """
        Read a stored document.

        Returns:
            The decoded value, or default when the key is missing, unreadable
            or Redis is unreachable
        """
        try:
            payload = self.redis.get(key)
        except redis.RedisError as e:
            logger.warning(f"Redis read of {key} failed: {str(e)}")
            return default

        if payload is None:
            return default
        try:
            return json.loads(payload)
        except json.JSONDecodeError:
            logger.warning(f"Discarding non-JSON cache entry {key}")
            return default

    def keys(self, pattern: str) -> List[str]:
        """List keys matching a glob pattern without blocking the server."""
        try:
            return list(self.redis.scan_iter(match=pattern))
        except redis.RedisError as e:
            logger.warning(f"Redis scan for {pattern} failed: {str(e)}")
            return []

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(self.redis.delete(*keys))
        except redis.RedisError as e:
            logger.warning(f"Redis delete failed: {str(e)}")
            return 0

    def close(self) -> None:
        self.redis.close()
