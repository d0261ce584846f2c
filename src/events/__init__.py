"""
Events module: publish interface for detections and predictions.
"""

from .publisher import (
    EventPublisher,
    InMemoryEventPublisher,
    LoggingEventPublisher,
    MonitoringEvents,
    NullEventPublisher,
    PublishedEvent,
    publish_monitoring_event,
)

__all__ = [
    "EventPublisher",
    "InMemoryEventPublisher",
    "LoggingEventPublisher",
    "MonitoringEvents",
    "NullEventPublisher",
    "PublishedEvent",
    "publish_monitoring_event",
]
