"""
Connections to Firebase and Redis.
"""
import os
import logging
import firebase_admin
from firebase_admin import credentials

from poultry_ops.infrastructure.exceptions import ConfigurationError, StoreUnavailableError
from .redis_client import RedisClient

logger = logging.getLogger(__name__)

# Module-level connection handles
redis_client = None
firebase_app = None


def init_redis_connection(config=None) -> RedisClient:
    """Open the Redis connection."""
    if config is not None:
        params = config.get_redis_connection_params()
    else:
        params = {
            'host': os.getenv("REDIS_HOST", "localhost"),
            'port': int(os.getenv("REDIS_PORT", 6379)),
            'db': int(os.getenv("REDIS_DB", 0)),
            'password': os.getenv("REDIS_PASSWORD", None)
        }

    client = RedisClient(**params)
    return client


def init_firebase_connection(config=None) -> firebase_admin.App:
    """Initialize the default Firebase app."""
    global firebase_app

    if firebase_app is not None:
        logger.info("Firebase app already initialized")
        return firebase_app

    try:
        firebase_app = firebase_admin.get_app()
        logger.info("Using existing Firebase app")
        return firebase_app
    except ValueError:
        pass

    if config is not None:
        cred_path = config.get_firebase_credentials_path()
        db_url = config.get_firebase_database_url()
    else:
        cred_path = os.getenv("FIREBASE_CREDENTIALS_PATH")
        db_url = os.getenv("FIREBASE_DATABASE_URL")

    if not db_url:
        raise ConfigurationError(message="FIREBASE_DATABASE_URL is not set")

    if not cred_path or not os.path.exists(cred_path):
        logger.error(f"Firebase credentials file not found: {cred_path}")
        raise StoreUnavailableError(
            message=f"Firebase credentials file not found: {cred_path}",
            service_name="firebase"
        )

    try:
        cred = credentials.Certificate(cred_path)
        firebase_app = firebase_admin.initialize_app(cred, {
            'databaseURL': db_url
        })
    except Exception as e:
        logger.error(f"Failed to connect to Firebase: {str(e)}")
        raise StoreUnavailableError(message=f"Failed to connect to Firebase: {str(e)}", service_name="firebase")

    logger.info(f"Firebase connection established to {db_url}")
    return firebase_app


def get_redis_client(config=None) -> RedisClient:
    """Return the Redis client, connecting on first use."""
    global redis_client
    if redis_client is None:
        redis_client = init_redis_connection(config)
    return redis_client


def close_database_connections() -> None:
    """Close Redis and delete the Firebase app."""
    global redis_client, firebase_app

    if redis_client is not None:
        redis_client.close()
        redis_client = None

    if firebase_app is not None:
        firebase_admin.delete_app(firebase_app)
        firebase_app = None

    logger.info("Database connections closed")
