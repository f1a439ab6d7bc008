from .connections import (
    init_firebase_connection,
    get_redis_client,
    close_database_connections
)
from .redis_client import RedisClient
from .firebase_client import FirebaseClient, records_from_snapshot

__all__ = [
    "init_firebase_connection",
    "get_redis_client",
    "close_database_connections",
    "RedisClient",
    "FirebaseClient",
    "records_from_snapshot"
]
