"""
WriteQueue: per-key, last-write-wins durability queue.

Services update memory first and then enqueue the serialized record. The
engine flushes at the end of every action.

Rules
-----
- A group is a mapping of keys written together (all-or-nothing).
- Enqueuing a group absorbs every pending or failed group that shares a key;
  the merged group keeps the union of keys and the newest value per key.
- A group that fails to write is logged as ``PersistenceFailure`` and parked.
  It is not retried on its own: the next mutation of any of its keys pulls
  it back into the pending set.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional

from manifest_garden.core.exceptions import PersistenceFailure
from manifest_garden.core.logging.logger import get_logger
from manifest_garden.core.persistence.gateway import PersistenceGateway

logger = get_logger(__name__)

WriteGroup = Dict[str, bytes]


class WriteQueue:
    """Pending write groups for one gateway."""

    def __init__(self, gateway: PersistenceGateway) -> None:
        self._gateway = gateway
        self._pending: List[WriteGroup] = []
        self._failed: List[WriteGroup] = []
        self._flush_count = 0
        self._failure_count = 0

    # ------------------------------------------------------------------ #
    # Enqueue
    # ------------------------------------------------------------------ #

    def enqueue(self, records: Mapping[str, bytes]) -> None:
        if not records:
            return

        merged: WriteGroup = {}
        keys = set(records)

        for bucket in (self._failed, self._pending):
            kept: List[WriteGroup] = []
            for group in bucket:
                if keys.intersection(group):
                    merged.update(group)
                    keys.update(group)
                else:
                    kept.append(group)
            bucket[:] = kept

        merged.update(records)
        self._pending.append(merged)

    def peek(self, key: str) -> Optional[bytes]:
        """Newest unwritten value for ``key``, if any."""
        for bucket in (self._pending, self._failed):
            for group in reversed(bucket):
                if key in group:
                    return group[key]
        return None

    # ------------------------------------------------------------------ #
    # Flush
    # ------------------------------------------------------------------ #

    def flush(self) -> List[PersistenceFailure]:
        """Write every pending group; returns the failures (already logged)."""
        failures: List[PersistenceFailure] = []
        groups, self._pending = self._pending, []

        for group in groups:
            try:
                self._gateway.set_many(group)
                self._flush_count += 1
            except Exception as e:
                failure = PersistenceFailure("set_many", sorted(group), original_error=e)
                self._failed.append(group)
                self._failure_count += 1
                failures.append(failure)
                logger.error(
                    "Write group failed; parked until next mutation",
                    extra={
                        "keys": failure.keys,
                        "error_code": failure.error_code,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )

        return failures

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def pending_keys(self) -> List[str]:
        return sorted({key for group in self._pending for key in group})

    @property
    def failed_keys(self) -> List[str]:
        return sorted({key for group in self._failed for key in group})

    def discard(self) -> None:
        self._pending.clear()
        self._failed.clear()

    def get_metrics(self) -> Dict[str, int]:
        return {
            "pending_groups": len(self._pending),
            "failed_groups": len(self._failed),
            "flushed_groups": self._flush_count,
            "failures": self._failure_count,
        }
