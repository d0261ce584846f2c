"""
Event publishing boundary.

Detectors hand their findings to an injected publisher. Delivery (queue,
webhook, in-process bus) is the publisher's concern; publishing is best
effort and never changes what a detector returns.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import threading
from collections import defaultdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Set, Union

logger = logging.getLogger(__name__)

Payload = Dict[str, Any]
EventHandler = Callable[["PublishedEvent"], None]


class MonitoringEvents(str, Enum):
    """Event types emitted by the monitoring core."""

    ANOMALY_DETECTED = "monitoring.anomaly_detected"
    OUTAGE_PREDICTED = "monitoring.outage_predicted"
    FRAUD_PREDICTED = "monitoring.fraud_predicted"
    WEB3_SUSPICIOUS_ACTIVITY = "monitoring.web3_suspicious_activity"
    BASELINE_UPDATED = "monitoring.baseline_updated"
    ALERT_TRIGGERED = "monitoring.alert_triggered"


class EventPublisher(Protocol):
    """Anything with publish(event_type, payload). May return an awaitable."""

    def publish(self, event_type: str, payload: Payload) -> Union[None, Awaitable[None]]:
        ...


class PublishedEvent:
    __slots__ = ("event_type", "payload")

    def __init__(self, event_type: str, payload: Payload) -> None:
        self.event_type = event_type
        self.payload = payload

    def __repr__(self) -> str:
        return f"PublishedEvent({self.event_type!r}, {self.payload!r})"


class InMemoryEventPublisher:
    """
    In-process event bus.

    Keeps every published event and dispatches it to handlers subscribed to
    its type or to "*". A failing handler is logged and skipped.
    """

    def __init__(self) -> None:
        self.events: List[PublishedEvent] = []
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._handlers[str(event_type)].append(handler)

    def publish(self, event_type: str, payload: Payload) -> None:
        event = PublishedEvent(str(event_type), dict(payload))
        self.events.append(event)
        for handler in self._handlers.get(event.event_type, []) + self._handlers.get("*", []):
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler failed for %s", event.event_type)

    def of_type(self, event_type: str) -> List[PublishedEvent]:
        return [e for e in self.events if e.event_type == str(event_type)]

    def clear(self) -> None:
        self.events.clear()


class LoggingEventPublisher:
    """Writes events to a logger as JSON. Useful when no bus is wired up."""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.INFO) -> None:
        self._log = log or logger
        self._level = level

    def publish(self, event_type: str, payload: Payload) -> None:
        self._log.log(self._level, "event %s %s", event_type, json.dumps(payload, default=str))


class NullEventPublisher:
    def publish(self, event_type: str, payload: Payload) -> None:
        return None


def _event_name(event_type: Union[str, MonitoringEvents]) -> str:
    return event_type.value if isinstance(event_type, MonitoringEvents) else str(event_type)


# Strong references to in-flight async publishes until they finish
_pending_tasks: Set["asyncio.Future[None]"] = set()


def _dispatch_awaitable(result: Awaitable[None], event_type: str) -> None:
    """
    Start an async publish without waiting for it.

    Inside a running loop it becomes a task on that loop; otherwise it runs
    to completion on its own loop in a daemon thread.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop is not None:
        task = asyncio.ensure_future(result, loop=loop)
        _pending_tasks.add(task)
        task.add_done_callback(lambda t: _task_done(t, event_type))
        return

    thread = threading.Thread(
        target=_run_detached,
        args=(result, event_type),
        name=f"publish-{event_type}",
        daemon=True,
    )
    thread.start()


async def _await(result: Awaitable[None]) -> None:
    await result


def _run_detached(result: Awaitable[None], event_type: str) -> None:
    try:
        asyncio.run(_await(result))
    except Exception:
        logger.exception("Async publish of %s failed", event_type)


def _task_done(task: "asyncio.Future[None]", event_type: str) -> None:
    _pending_tasks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Async publish of %s failed: %s", event_type, exc)


def publish_monitoring_event(
    publisher: Optional[EventPublisher],
    event_type: Union[str, MonitoringEvents],
    payload: Payload,
    service_name: str = "monitoring-service",
) -> bool:
    """
    Publish a monitoring event with a timestamp/service envelope.

    Returns:
        True if the publisher accepted the event, False if it raised.
        Awaitable results are never awaited here: they are scheduled on the
        running loop, or run on a daemon thread when there is none.
    """
    if publisher is None:
        return False

    name = _event_name(event_type)
    envelope = {
        **payload,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": service_name,
    }
    try:
        result = publisher.publish(name, envelope)
        if inspect.isawaitable(result):
            _dispatch_awaitable(result, name)
    except Exception:
        logger.exception("Failed to publish %s", name)
        return False
    return True
