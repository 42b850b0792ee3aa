"""
Analytics event pipeline.

- `EventProcessor`: single-writer actor that queues, summarizes and flushes
- `EventSummarizer`, `LRUCache`: per-window counters and the seen-user cache
- `scrub_user` / `UserFilter`: private attribute redaction
"""

from flagsync.core.events.lru import LRUCache
from flagsync.core.events.models import (
    CustomEvent,
    Event,
    FeatureRequestEvent,
    IdentifyEvent,
    new_custom_event,
    new_feature_request_event,
    new_identify_event,
)
from flagsync.core.events.privacy import UserFilter, scrub_user
from flagsync.core.events.processor import EventProcessor
from flagsync.core.events.sender import DeliveryResult, EventSender
from flagsync.core.events.summarizer import CounterKey, CounterValue, EventSummarizer, SummaryState

__all__ = [
    "LRUCache",
    "Event",
    "FeatureRequestEvent",
    "CustomEvent",
    "IdentifyEvent",
    "new_feature_request_event",
    "new_custom_event",
    "new_identify_event",
    "UserFilter",
    "scrub_user",
    "EventProcessor",
    "EventSender",
    "DeliveryResult",
    "EventSummarizer",
    "CounterKey",
    "CounterValue",
    "SummaryState",
]
