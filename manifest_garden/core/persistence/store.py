"""StateStore: typed records on top of a gateway and its write queue."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from manifest_garden.core.exceptions import PersistenceFailure
from manifest_garden.core.logging.logger import get_logger
from manifest_garden.core.persistence.codec import decode_record, encode_record
from manifest_garden.core.persistence.gateway import PersistenceGateway
from manifest_garden.core.persistence.write_queue import WriteQueue

logger = get_logger(__name__)


class StateStore:
    """
    Load/save JSON-compatible records by key.

    Reads see unflushed writes. Saves only enqueue; ``flush()`` performs the
    durable write.
    """

    def __init__(self, gateway: PersistenceGateway, queue: Optional[WriteQueue] = None) -> None:
        self._gateway = gateway
        self._queue = queue or WriteQueue(gateway)

    @property
    def gateway(self) -> PersistenceGateway:
        return self._gateway

    @property
    def queue(self) -> WriteQueue:
        return self._queue

    def load(self, key: str, default: Any = None) -> Any:
        raw = self._queue.peek(key)
        if raw is None:
            raw = self._gateway.get(key)
        if raw is None:
            return default
        return decode_record(key, raw)

    def save(self, key: str, record: Any) -> None:
        self._queue.enqueue({key: encode_record(record)})

    def save_many(self, records: Mapping[str, Any]) -> None:
        """Enqueue several records as one all-or-nothing group."""
        self._queue.enqueue({key: encode_record(value) for key, value in records.items()})

    def flush(self) -> List[PersistenceFailure]:
        return self._queue.flush()

    def reset(self) -> None:
        """Drop unflushed writes and every stored record."""
        self._queue.discard()
        self._gateway.clear()
        logger.info("State store reset")

    def get_metrics(self) -> Dict[str, int]:
        return self._queue.get_metrics()
