"""Build the configured storage backend from ``Config``."""

from __future__ import annotations

from typing import Optional

from manifest_garden.core.config.config import Config, StorageBackend
from manifest_garden.core.exceptions import ConfigurationError
from manifest_garden.core.logging.logger import get_logger
from manifest_garden.core.persistence.file_storage import FileStorage
from manifest_garden.core.persistence.gateway import MemoryStorage, PersistenceGateway

logger = get_logger(__name__)


def create_gateway(backend: Optional[str] = None) -> PersistenceGateway:
    """
    Create a gateway for ``backend`` (defaults to ``Config.STORAGE_BACKEND``).

    Redis and SQL backends are imported lazily so a file-only install never
    opens a connection.
    """
    name = (backend or Config.STORAGE_BACKEND).lower()
    try:
        kind = StorageBackend(name)
    except ValueError as e:
        raise ConfigurationError("STORAGE_BACKEND", f"Unknown storage backend '{name}'") from e

    if kind is StorageBackend.MEMORY:
        gateway: PersistenceGateway = MemoryStorage()
    elif kind is StorageBackend.FILE:
        gateway = FileStorage(Config.DATA_DIR)
    elif kind is StorageBackend.REDIS:
        from manifest_garden.core.persistence.redis_storage import RedisStorage

        gateway = RedisStorage.from_url(
            Config.REDIS_URL,
            prefix=Config.REDIS_KEY_PREFIX,
            socket_timeout=Config.REDIS_SOCKET_TIMEOUT,
        )
    else:
        from manifest_garden.core.persistence.sql_storage import SQLStorage

        gateway = SQLStorage.from_url(Config.DATABASE_URL, echo=Config.DATABASE_ECHO)

    logger.info("Storage backend ready", extra={"backend": kind.value})
    return gateway
