"""
Listener storage for the event bus.

Listeners are keyed by the pattern they subscribed with. A pattern without
``*`` is an exact event name; anything else is a shell-style wildcard
(``garden.*``, ``*.unlocked``, ``*``).
"""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Dict, List

from manifest_garden.core.event.types import EventListener


class ListenerRegistry:
    """Not thread-safe; one registry per engine."""

    def __init__(self) -> None:
        self._by_pattern: Dict[str, List[EventListener]] = {}

    @staticmethod
    def _matches(event_name: str, pattern: str) -> bool:
        return pattern == event_name or ("*" in pattern and fnmatchcase(event_name, pattern))

    def add(self, listener: EventListener, *, allow_duplicates: bool = False) -> bool:
        """False when ``(pattern, identifier)`` is already registered."""
        bucket = self._by_pattern.setdefault(listener.pattern, [])
        if not allow_duplicates and any(entry.identifier == listener.identifier for entry in bucket):
            return False
        bucket.append(listener)
        return True

    def remove(self, pattern: str, identifier: str) -> bool:
        bucket = self._by_pattern.get(pattern, [])
        kept = [entry for entry in bucket if entry.identifier != identifier]
        if len(kept) == len(bucket):
            return False
        if kept:
            self._by_pattern[pattern] = kept
        else:
            del self._by_pattern[pattern]
        return True

    def clear(self) -> int:
        total = len(self)
        self._by_pattern.clear()
        return total

    def take(self, event_name: str) -> List[EventListener]:
        """
        Listeners for ``event_name`` in run order.

        One-shot listeners are dropped from the registry here, before they
        run, so a re-entrant publish of the same event cannot reach them twice.
        """
        matched: List[EventListener] = []
        for pattern in list(self._by_pattern):
            if not self._matches(event_name, pattern):
                continue
            bucket = self._by_pattern[pattern]
            matched.extend(bucket)
            if any(entry.once for entry in bucket):
                remaining = [entry for entry in bucket if not entry.once]
                if remaining:
                    self._by_pattern[pattern] = remaining
                else:
                    del self._by_pattern[pattern]
        return sorted(matched, key=lambda entry: entry.sort_key)

    def count(self, event_name: str) -> int:
        return sum(
            len(bucket)
            for pattern, bucket in self._by_pattern.items()
            if self._matches(event_name, pattern)
        )

    def patterns(self) -> List[str]:
        return sorted(self._by_pattern)

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._by_pattern.values())
