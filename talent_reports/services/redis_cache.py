"""Redis caching service: template cache and single-use render tokens."""
import logging
import secrets
from typing import Optional, Type, TypeVar
import redis
from pydantic import BaseModel
from talent_reports.config import get_settings

logger = logging.getLogger(__name__)
T = TypeVar("T", bound=BaseModel)


class RedisCache:
    """Redis caching service with Pydantic model support."""

    def __init__(self, host: str, port: int, db: int = 0, client: Optional[redis.Redis] = None):
        self.client = client or redis.Redis(
            host=host,
            port=port,
            db=db,
            decode_responses=True
        )

    async def health_check(self) -> tuple[bool, Optional[str]]:
        """Check if Redis connection is healthy."""
        try:
            self.client.ping()
            return True, None
        except Exception as e:
            return False, str(e)

    def get(self, key: str, model: Type[T]) -> Optional[T]:
        """Get cached item and deserialize to Pydantic model."""
        try:
            data = self.client.get(key)
            if data:
                return model.model_validate_json(data)
            return None
        except Exception as e:
            logger.warning(f"Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: BaseModel, ttl_seconds: int) -> bool:
        """Cache Pydantic model with TTL."""
        try:
            self.client.setex(key, ttl_seconds, value.model_dump_json())
            return True
        except Exception as e:
            logger.warning(f"Cache set error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        """Invalidate cache entry."""
        try:
            self.client.delete(key)
            return True
        except Exception as e:
            logger.warning(f"Cache delete error for {key}: {e}")
            return False

    # ================================================================
    # Render service tokens
    # ================================================================

    def issue_token(self, assignment_id: str, ttl_seconds: int) -> Optional[str]:
        """Mint a random token that unlocks one print-view load of one assignment."""
        token = secrets.token_urlsafe(32)
        try:
            self.client.setex(CacheKeys.render_token(token), ttl_seconds, assignment_id)
            return token
        except Exception as e:
            logger.error(f"Failed to issue render token for {assignment_id}: {e}")
            return None

    def consume_token(self, token: str, assignment_id: str) -> bool:
        """Atomically take a token; valid only once, before expiry, for its own assignment."""
        if not token:
            return False
        try:
            stored = self.client.getdel(CacheKeys.render_token(token))
        except Exception as e:
            logger.warning(f"Token lookup failed: {e}")
            return False
        return stored is not None and stored == assignment_id


# Cache key prefixes
class CacheKeys:
    """Cache key constants and builders."""
    TEMPLATE = "report_template"
    RENDER_TOKEN = "render_token"

    @staticmethod
    def template(assessment_id: str) -> str:
        return f"report_template:{assessment_id}"

    @staticmethod
    def render_token(token: str) -> str:
        return f"render_token:{token}"


# Singleton instance
_redis_cache: Optional[RedisCache] = None


def get_redis_cache() -> RedisCache:
    """Get or create Redis cache singleton."""
    global _redis_cache
    if _redis_cache is None:
        settings = get_settings()
        _redis_cache = RedisCache(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db
        )
    return _redis_cache
