import time
import redis
import os
from loguru import logger

class Idem:
    """Redis-based guard that drops duplicate deliveries of the same prospect event."""

    def __init__(self, prefix: str = "prospect-event"):
        """Initialize Redis connection."""
        self.prefix = prefix
        self._memory_keys = set()
        try:
            redis_url = os.getenv("REDIS_URL", "redis://localhost:6379")
            self.r = redis.from_url(redis_url)
            self.r.ping()
            logger.info("Redis connection established successfully")
        except Exception as e:
            logger.error(f"Redis connection failed: {e}")
            # In-process fallback; does not de-duplicate across workers
            self.r = None

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def check_and_set(self, key: str, ttl: int = 3600) -> bool:
        """
        Check if key exists and set it if it doesn't.

        Args:
            key: Unique identifier for the event delivery
            ttl: Time to live in seconds (default: 1 hour)

        Returns:
            True if key was set (first delivery), False if already seen
        """
        if not key:
            logger.warning("Empty key provided to idempotency check")
            return False

        try:
            if self.r:
                result = self.r.set(
                    name=self._key(key),
                    value=int(time.time()),
                    ex=ttl,
                    nx=True
                )
                return result is True
            else:
                if key in self._memory_keys:
                    return False
                self._memory_keys.add(key)
                return True

        except Exception as e:
            logger.error(f"Idempotency check failed: {e}")
            # Fail open
            return True

    def clear_key(self, key: str) -> bool:
        """Forget a key so the same delivery can be processed again."""
        try:
            if self.r:
                return bool(self.r.delete(self._key(key)))
            else:
                self._memory_keys.discard(key)
                return True
        except Exception as e:
            logger.error(f"Failed to clear key: {e}")
            return False
