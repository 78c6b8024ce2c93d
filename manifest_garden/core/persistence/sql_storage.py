"""
SQLStorage: gateway backed by a relational key/value table.

One row per storage key. Each ``set_many`` group runs inside a single
transaction, so a failure rolls the whole group back.
"""

from datetime import datetime, timezone
from typing import Mapping, Optional

from sqlalchemy import LargeBinary, delete
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Column, Field, Session, SQLModel, create_engine

from manifest_garden.core.exceptions import ConfigurationError
from manifest_garden.core.logging.logger import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StorageRecord(SQLModel, table=True):
    """
    Serialized state record.

    Attributes:
        key: Storage key (``ledger``, ``quests``, ``seedRankings``...)
        value: JSON document as bytes
        updated_at: Last write time (UTC)
    """

    __tablename__ = "garden_storage"

    key: str = Field(primary_key=True, max_length=64)
    value: bytes = Field(sa_column=Column(LargeBinary, nullable=False))
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)


class SQLStorage:
    """SQLAlchemy gateway; works with any SQLAlchemy URL (sqlite, postgres...)."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        SQLModel.metadata.create_all(engine, tables=[StorageRecord.__table__])

    @classmethod
    def from_url(cls, url: str, *, echo: bool = False) -> "SQLStorage":
        if not url:
            raise ConfigurationError("DATABASE_URL", "SQL backend selected but DATABASE_URL is empty")
        try:
            engine = create_engine(url, echo=echo)
            storage = cls(engine)
        except SQLAlchemyError as e:
            logger.error(
                "SQL storage initialization failed",
                extra={"error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            raise ConfigurationError("DATABASE_URL", f"Database unavailable: {e}") from e

        logger.info("SQL storage initialized", extra={"dialect": engine.dialect.name})
        return storage

    @property
    def engine(self) -> Engine:
        return self._engine

    def get(self, key: str) -> Optional[bytes]:
        with Session(self._engine) as session:
            record = session.get(StorageRecord, key)
            return None if record is None else bytes(record.value)

    def set(self, key: str, value: bytes) -> None:
        self.set_many({key: value})

    def set_many(self, records: Mapping[str, bytes]) -> None:
        now = _utcnow()
        with Session(self._engine) as session:
            with session.begin():
                for key, value in records.items():
                    session.merge(StorageRecord(key=key, value=bytes(value), updated_at=now))

    def clear(self) -> None:
        with Session(self._engine) as session:
            with session.begin():
                result = session.connection().execute(delete(StorageRecord))
        logger.info("SQL storage cleared", extra={"removed": result.rowcount})

    def dispose(self) -> None:
        self._engine.dispose()
