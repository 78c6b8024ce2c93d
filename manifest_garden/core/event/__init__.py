"""Synchronous event bus connecting the garden services to their observers."""

from manifest_garden.core.event.bus import EventBus
from manifest_garden.core.event.registry import ListenerRegistry
from manifest_garden.core.event.types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)

__all__ = [
    "CallbackType",
    "EventBus",
    "EventListener",
    "EventPayload",
    "ListenerPriority",
    "ListenerRegistry",
]
