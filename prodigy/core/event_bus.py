"""
Async pub/sub event bus for the Prodigy engine.

Features:
- Priority-based listener execution (CRITICAL > HIGH > NORMAL > LOW)
- Error isolation - exceptions caught and logged, don't stop other listeners
- Metrics tracking (events published, errors by event, listener count)
- One-time listeners (automatically unsubscribe after first execution)
- Duplicate prevention (optional - prevents same callback registered twice)
- Wildcard event patterns (e.g., "knowledge.*" matches all knowledge events)

Architecture:
- Instance-based, so each coordinator (and each test) owns its own bus
- Listeners run sequentially in priority order and are awaited; a publish
  returns only after every listener has finished
- Sync callbacks are invoked inline on the event loop

Usage:
    bus = EventBus()
    bus.subscribe("mission.completed", on_mission_completed, priority=ListenerPriority.HIGH)
    bus.subscribe("knowledge.*", audit_knowledge_changes)

    await bus.publish("mission.completed", {"mission_id": "m-1", "xp": 67.5})

    # One-time listeners
    bus.subscribe("dungeon.completed", show_celebration, once=True)
"""

import inspect
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from prodigy.core.logging.logger import LogContext, get_logger

logger = get_logger(__name__)


class ListenerPriority(Enum):
    """Priority levels for event listeners."""

    CRITICAL = 0
    HIGH = 10
    NORMAL = 50
    LOW = 100


@dataclass
class EventListener:
    """Represents a registered event listener."""

    callback: Callable[[Dict[str, Any]], Any]
    priority: ListenerPriority
    identifier: str
    once: bool = False


@dataclass
class EventMetrics:
    """Metrics for event bus operations."""

    events_published: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    listener_errors: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    total_listeners: int = 0

    def record_publish(self, event_name: str) -> None:
        self.events_published[event_name] += 1

    def record_error(self, event_name: str) -> None:
        self.listener_errors[event_name] += 1

    def get_summary(self) -> Dict[str, Any]:
        published = sum(self.events_published.values())
        errors = sum(self.listener_errors.values())
        return {
            "total_events_published": published,
            "events_by_type": dict(self.events_published),
            "total_errors": errors,
            "errors_by_event": dict(self.listener_errors),
            "total_listeners": self.total_listeners,
            "error_rate": errors / max(1, published) * 100,
        }


class EventBus:
    """
    Async pub/sub event bus for domain events.

    Usage:
        bus.subscribe("player.streak_updated", handle_streak)
        await bus.publish("player.streak_updated", {"player_id": "p1", "streak": 3})
    """

    def __init__(self, enable_metrics: bool = True) -> None:
        self._listeners: Dict[str, List[EventListener]] = {}
        self._wildcard_listeners: List[Tuple[str, EventListener]] = []
        self._metrics: Optional[EventMetrics] = EventMetrics() if enable_metrics else None

    def subscribe(
        self,
        event_name: str,
        callback: Callable[[Dict[str, Any]], Any],
        priority: ListenerPriority = ListenerPriority.NORMAL,
        identifier: Optional[str] = None,
        once: bool = False,
        allow_duplicates: bool = False,
    ) -> str:
        """
        Subscribe a callback to an event.

        Args:
            event_name: Event to subscribe to (supports wildcards with '*')
            callback: Async or sync function to call when event fires
            priority: Execution priority (lower values execute first)
            identifier: Unique identifier for this listener (auto-generated if None)
            once: If True, automatically unsubscribe after first execution
            allow_duplicates: If False, prevents registering same callback twice

        Returns:
            Listener identifier for later unsubscription
        """
        if identifier is None:
            identifier = f"{callback.__module__}.{callback.__qualname__}"

        listener = EventListener(
            callback=callback,
            priority=priority,
            identifier=identifier,
            once=once,
        )

        if not allow_duplicates and self._is_registered(event_name, identifier):
            logger.warning(
                f"Duplicate listener prevented: {identifier} for event {event_name}"
            )
            return identifier

        if "*" in event_name:
            self._wildcard_listeners.append((event_name, listener))
            self._wildcard_listeners.sort(key=lambda item: item[1].priority.value)
        else:
            bucket = self._listeners.setdefault(event_name, [])
            bucket.append(listener)
            bucket.sort(key=lambda l: l.priority.value)

        if self._metrics:
            self._metrics.total_listeners += 1

        logger.debug(f"Subscribed {identifier} to {event_name} with priority {priority.name}")
        return identifier

    def _is_registered(self, event_name: str, identifier: str) -> bool:
        if "*" in event_name:
            return any(
                pattern == event_name and l.identifier == identifier
                for pattern, l in self._wildcard_listeners
            )
        return any(l.identifier == identifier for l in self._listeners.get(event_name, []))

    def unsubscribe(self, event_name: str, identifier: str) -> bool:
        """
        Unsubscribe a listener from an event.

        Returns:
            True if listener was found and removed
        """
        if event_name in self._listeners:
            original_count = len(self._listeners[event_name])
            self._listeners[event_name] = [
                l for l in self._listeners[event_name] if l.identifier != identifier
            ]
            if len(self._listeners[event_name]) < original_count:
                if self._metrics:
                    self._metrics.total_listeners -= 1
                logger.debug(f"Unsubscribed {identifier} from {event_name}")
                return True

        original_count = len(self._wildcard_listeners)
        self._wildcard_listeners = [
            (pattern, l)
            for pattern, l in self._wildcard_listeners
            if not (pattern == event_name and l.identifier == identifier)
        ]
        if len(self._wildcard_listeners) < original_count:
            if self._metrics:
                self._metrics.total_listeners -= 1
            logger.debug(f"Unsubscribed {identifier} from wildcard {event_name}")
            return True

        return False

    def clear(self) -> None:
        """Remove all listeners from all events."""
        self._listeners.clear()
        self._wildcard_listeners.clear()
        if self._metrics:
            self._metrics.total_listeners = 0
        logger.debug("EventBus cleared - all listeners removed")

    async def publish(self, event_name: str, data: Dict[str, Any]) -> List[Any]:
        """
        Publish an event to all subscribed listeners.

        Args:
            event_name: Event to publish
            data: Event payload

        Returns:
            List of return values from listeners (None for failed listeners)
        """
        if self._metrics:
            self._metrics.record_publish(event_name)

        listeners: List[Tuple[str, EventListener]] = [
            (event_name, l) for l in self._listeners.get(event_name, [])
        ]
        listeners.extend(
            (pattern, l)
            for pattern, l in self._wildcard_listeners
            if self._matches_wildcard(event_name, pattern)
        )
        # Stable sort keeps registration order within a priority level
        listeners.sort(key=lambda item: item[1].priority.value)

        if not listeners:
            logger.debug(f"No listeners for event: {event_name}")
            return []

        with LogContext(event_name=event_name):
            return await self._execute_listeners(event_name, data, listeners)

    async def _execute_listeners(
        self,
        event_name: str,
        data: Dict[str, Any],
        listeners: List[Tuple[str, EventListener]],
    ) -> List[Any]:
        """Execute listeners sequentially with error isolation."""
        results: List[Any] = []
        to_remove: List[Tuple[str, str]] = []

        for registered_under, listener in listeners:
            try:
                result = listener.callback(data)
                if inspect.isawaitable(result):
                    result = await result
                results.append(result)
            except Exception as e:
                if self._metrics:
                    self._metrics.record_error(event_name)
                logger.error(
                    f"Error in listener {listener.identifier} for event {event_name}: {e}",
                    extra={
                        "event_name": event_name,
                        "listener_id": listener.identifier,
                        "error_type": type(e).__name__,
                    },
                    exc_info=True,
                )
                results.append(None)
                continue

            if listener.once:
                to_remove.append((registered_under, listener.identifier))

        for registered_under, identifier in to_remove:
            self.unsubscribe(registered_under, identifier)

        return results

    @staticmethod
    def _matches_wildcard(event_name: str, pattern: str) -> bool:
        """Check if event name matches wildcard pattern."""
        if pattern == "*":
            return True
        if "*" not in pattern:
            return event_name == pattern

        prefix, _, suffix = pattern.partition("*")
        return (
            len(event_name) >= len(prefix) + len(suffix)
            and event_name.startswith(prefix)
            and event_name.endswith(suffix)
        )

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Formatted metrics summary, or an empty dict if metrics are disabled."""
        if self._metrics:
            return self._metrics.get_summary()
        return {}

    def get_listener_count(self, event_name: Optional[str] = None) -> int:
        """
        Get count of registered listeners.

        Args:
            event_name: If provided, count for specific event. Otherwise total count.
        """
        if event_name:
            count = len(self._listeners.get(event_name, []))
            count += sum(
                1
                for pattern, _ in self._wildcard_listeners
                if self._matches_wildcard(event_name, pattern)
            )
            return count
        return sum(len(v) for v in self._listeners.values()) + len(self._wildcard_listeners)

    def get_all_events(self) -> List[str]:
        events = list(self._listeners.keys())
        events.extend(pattern for pattern, _ in self._wildcard_listeners)
        return sorted(set(events))
