import logging
import threading
import time
from typing import TYPE_CHECKING, Optional

import redis
from redis import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from wordrec.core.config import settings

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    BaseRedis = Redis[bytes]
else:
    BaseRedis = Redis


class RedisClient:
    """Singleton Redis client"""

    _instance: Optional["RedisClient"] = None
    _client: BaseRedis | None = None
    _last_health_check: float = 0
    _health_check_interval: int = 30
    _lock = threading.Lock()

    def __new__(cls) -> "RedisClient":
        # Double-checked locking keeps the singleton thread safe
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._client = redis.Redis(
                        host=settings.redis_host,
                        port=settings.redis_port,
                        db=settings.redis_db,
                        decode_responses=False,
                        socket_connect_timeout=5,
                        socket_timeout=5,
                        retry_on_timeout=True,
                        health_check_interval=30,
                    )
        return cls._instance

    def get_client(self) -> BaseRedis:
        """Return the underlying Redis client"""
        if self._client is None:
            raise RuntimeError("Redis client not initialized")
        return self._client

    def is_connection_healthy(self, max_retries: int = 3) -> bool:
        """Ping Redis, retrying with a growing delay"""
        current_time = time.time()

        # Reuse a recent positive result
        if current_time - self._last_health_check < self._health_check_interval:
            return True

        for attempt in range(max_retries):
            try:
                result = self.get_client().ping()
                self._last_health_check = current_time
                return bool(result)
            except (RedisConnectionError, RedisTimeoutError) as e:
                if attempt == max_retries - 1:
                    logger.error(f"Redis health check failed after {max_retries} attempts: {e}")
                    return False
                logger.warning(f"Redis health check attempt {attempt + 1} failed, retrying...")
                time.sleep(0.5 * (attempt + 1))

        return False

    def close(self) -> None:
        if self._client is not None:
            self._client.close()


redis_client = RedisClient()


def get_redis_client() -> BaseRedis:
    """Redis client dependency"""
    return redis_client.get_client()


def is_redis_healthy() -> bool:
    return redis_client.is_connection_healthy()
