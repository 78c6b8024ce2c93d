"""Listener records and priorities for the garden event bus."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Dict

EventPayload = Dict[str, Any]
CallbackType = Callable[[EventPayload], Any]


class ListenerPriority(IntEnum):
    """Execution order inside ``publish()``; lower runs first."""

    CRITICAL = 0  # state other listeners read
    HIGH = 10  # goal trackers
    NORMAL = 50  # derived views (leaderboards)
    LOW = 100  # diagnostics


@dataclass(frozen=True)
class EventListener:
    pattern: str
    callback: CallbackType
    priority: ListenerPriority
    identifier: str
    once: bool = False

    @property
    def sort_key(self) -> tuple:
        return (int(self.priority), self.identifier)

    @staticmethod
    def default_identifier(pattern: str, callback: CallbackType) -> str:
        """``module.qualname@pattern`` for callbacks subscribed without an id."""
        func = getattr(callback, "func", callback)
        qualname = getattr(func, "__qualname__", None) or getattr(func, "__name__", "listener")
        return f"{getattr(func, '__module__', '?')}.{qualname}@{pattern}"
