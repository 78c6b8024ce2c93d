"""
PersistenceGateway: the byte-level key/value contract every storage backend
implements, plus the in-memory backend.

Contract
--------
- ``get(key)`` returns the stored bytes or ``None``.
- ``set(key, value)`` stores one record.
- ``set_many(records)`` stores a group all-or-nothing: after a failure no
  record of the group is visible.
- ``clear()`` removes every record owned by this gateway.

Backends raise their native exceptions; the write queue wraps failures in
``PersistenceFailure``.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class PersistenceGateway(Protocol):
    """Key/value storage for serialized records."""

    def get(self, key: str) -> Optional[bytes]:
        ...

    def set(self, key: str, value: bytes) -> None:
        ...

    def set_many(self, records: Mapping[str, bytes]) -> None:
        ...

    def clear(self) -> None:
        ...


class MemoryStorage:
    """
    Dict-backed gateway for tests and ephemeral sessions.

    ``set_many`` builds the new state on a copy and swaps it in, so a group
    is applied all-or-nothing.
    """

    def __init__(self, initial: Optional[Mapping[str, bytes]] = None) -> None:
        self._data: Dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def set_many(self, records: Mapping[str, bytes]) -> None:
        staged = dict(self._data)
        for key, value in records.items():
            staged[key] = bytes(value)
        self._data = staged

    def clear(self) -> None:
        self._data.clear()

    def keys(self) -> list[str]:
        return sorted(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)
