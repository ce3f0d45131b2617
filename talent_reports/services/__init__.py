"""Services package - database, cache, and storage services."""
from .snowflake import SnowflakeService, get_snowflake_service
from .redis_cache import RedisCache, CacheKeys, get_redis_cache
from .s3_storage import S3Storage, StorageError, get_s3_storage

__all__ = [
    "SnowflakeService",
    "get_snowflake_service",
    "RedisCache",
    "CacheKeys",
    "get_redis_cache",
    "S3Storage",
    "StorageError",
    "get_s3_storage",
]
