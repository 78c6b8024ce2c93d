"""
RedisStorage: gateway backed by a Redis server.

Every key is namespaced with ``Config.REDIS_KEY_PREFIX``. ``set_many`` runs
inside a MULTI/EXEC pipeline so a group becomes visible atomically.

Configuration Keys
------------------
- Config.REDIS_URL             : str  (e.g. "redis://localhost:6379/0")
- Config.REDIS_KEY_PREFIX      : str  (default "garden:")
- Config.REDIS_SOCKET_TIMEOUT  : int  seconds (default 5)
"""

from __future__ import annotations

from typing import Mapping, Optional

from redis import Redis
from redis.exceptions import RedisError

from manifest_garden.core.exceptions import ConfigurationError
from manifest_garden.core.logging.logger import get_logger

logger = get_logger(__name__)


class RedisStorage:
    """Redis gateway. Values are stored as raw bytes."""

    def __init__(self, client: Redis, *, prefix: str = "garden:") -> None:
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, *, prefix: str = "garden:", socket_timeout: int = 5) -> "RedisStorage":
        """Connect and verify with PING; raises ConfigurationError when unreachable."""
        if not url:
            raise ConfigurationError("REDIS_URL", "Redis backend selected but REDIS_URL is empty")

        client = Redis.from_url(
            url,
            socket_timeout=socket_timeout,
            decode_responses=False,
        )
        try:
            client.ping()
        except RedisError as e:
            logger.error(
                "Redis connection failed",
                extra={"error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            raise ConfigurationError("REDIS_URL", f"Redis unreachable: {e}") from e

        logger.info(
            "Redis storage connected",
            extra={"prefix": prefix, "socket_timeout": socket_timeout},
        )
        return cls(client, prefix=prefix)

    def _k(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> Optional[bytes]:
        return self._client.get(self._k(key))

    def set(self, key: str, value: bytes) -> None:
        self._client.set(self._k(key), value)

    def set_many(self, records: Mapping[str, bytes]) -> None:
        pipe = self._client.pipeline(transaction=True)
        for key, value in records.items():
            pipe.set(self._k(key), value)
        pipe.execute()

    def clear(self) -> None:
        keys = list(self._client.scan_iter(match=f"{self._prefix}*"))
        if keys:
            self._client.delete(*keys)
        logger.info("Redis storage cleared", extra={"removed": len(keys), "prefix": self._prefix})
