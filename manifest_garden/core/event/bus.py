"""
Synchronous publish/subscribe between the garden services.

Mutating services (garden, ledger, progression, crafting, purchases)
publish named events; observers (goal trackers, leaderboards) subscribe.
``publish()`` runs every matching listener before it returns, so when an
engine action finishes every observer has already caught up. Listeners may
publish in turn (an unlocked achievement granting XP that levels the player
up); nested events are dispatched depth-first.

A listener that raises is logged with its traceback and skipped. The
remaining listeners still run and the publisher never sees the error.
"""

from __future__ import annotations

import inspect
from collections import Counter
from typing import Any, Dict, List, Optional

from manifest_garden.core.event.registry import ListenerRegistry
from manifest_garden.core.event.types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)
from manifest_garden.core.logging.logger import get_logger

logger = get_logger(__name__)


def _check_arity(callback: CallbackType) -> None:
    try:
        parameters = inspect.signature(callback).parameters
    except (TypeError, ValueError):
        return
    if len(parameters) != 1:
        raise ValueError(
            f"Listener {EventListener.default_identifier('?', callback)} must take exactly one "
            f"argument (the payload), takes {len(parameters)}"
        )


class EventBus:
    """
    >>> bus = EventBus()
    >>> bus.subscribe("garden.planted", on_planted, priority=ListenerPriority.HIGH)
    >>> bus.publish("garden.planted", {"id": "m1", "category": "love"})
    """

    def __init__(self, registry: Optional[ListenerRegistry] = None) -> None:
        self._registry = registry or ListenerRegistry()
        self._published: Counter[str] = Counter()
        self._errors: Counter[str] = Counter()

    # ------------------------------------------------------------------ #
    # Subscriptions
    # ------------------------------------------------------------------ #

    def subscribe(
        self,
        event_name: str,
        callback: CallbackType,
        *,
        priority: ListenerPriority = ListenerPriority.NORMAL,
        identifier: Optional[str] = None,
        once: bool = False,
        allow_duplicates: bool = False,
    ) -> str:
        """Register ``callback`` for an event name or wildcard; returns its identifier."""
        _check_arity(callback)
        listener = EventListener(
            pattern=event_name,
            callback=callback,
            priority=priority,
            identifier=identifier or EventListener.default_identifier(event_name, callback),
            once=once,
        )
        if self._registry.add(listener, allow_duplicates=allow_duplicates):
            logger.debug(
                "Listener subscribed",
                extra={"event_name": event_name, "listener_id": listener.identifier},
            )
        else:
            logger.warning(
                "Duplicate listener ignored",
                extra={"event_name": event_name, "listener_id": listener.identifier},
            )
        return listener.identifier

    def unsubscribe(self, event_name: str, identifier: str) -> bool:
        return self._registry.remove(event_name, identifier)

    def clear(self) -> None:
        removed = self._registry.clear()
        logger.info("Event listeners cleared", extra={"removed": removed})

    # ------------------------------------------------------------------ #
    # Publishing
    # ------------------------------------------------------------------ #

    def publish(self, event_name: str, data: Optional[EventPayload] = None) -> List[Any]:
        """Run every listener for ``event_name``; returns the results of those that succeeded."""
        payload: EventPayload = dict(data or {})
        self._published[event_name] += 1

        results: List[Any] = []
        for listener in self._registry.take(event_name):
            try:
                results.append(listener.callback(payload))
            except Exception as e:
                self._errors[event_name] += 1
                logger.error(
                    f"Listener failed on {event_name}",
                    extra={
                        "event_name": event_name,
                        "listener_id": listener.identifier,
                        "error_type": type(e).__name__,
                    },
                    exc_info=True,
                )
        return results

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def get_metrics_summary(self) -> Dict[str, Any]:
        return {
            "events_by_type": dict(self._published),
            "errors_by_event": dict(self._errors),
            "total_events_published": sum(self._published.values()),
            "total_listeners": len(self._registry),
        }

    def get_listener_count(self, event_name: Optional[str] = None) -> int:
        if event_name is None:
            return len(self._registry)
        return self._registry.count(event_name)

    def get_all_events(self) -> List[str]:
        return self._registry.patterns()
