"""
Summarizable state for the event processor: per-flag evaluation counters and
the "seen user" cache used to decide when an index record is needed.

Not thread-safe: only the processor loop thread calls into it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional

from flagsync.core.events.lru import LRUCache
from flagsync.core.events.models import Event, FeatureRequestEvent, now_millis
from flagsync.core.users import User


class CounterKey(NamedTuple):
    key: str
    variation: Optional[int]
    version: Optional[int]


@dataclass
class CounterValue:
    count: int
    flag_value: Any
    flag_default: Any


@dataclass
class SummaryState:
    counters: Dict[CounterKey, CounterValue] = field(default_factory=dict)
    start_date: int = 0
    end_date: int = 0

    def is_empty(self) -> bool:
        return not self.counters


class EventSummarizer:
    def __init__(self, user_keys_capacity: int):
        self._state = SummaryState()
        self._last_known_past_time = 0
        self._user_keys = LRUCache(user_keys_capacity)

    @property
    def last_known_past_time(self) -> int:
        return self._last_known_past_time

    def notice_user(self, user: Optional[User]) -> bool:
        """Remember this user; True means it was already seen in the current window."""
        if user is None or not user.key:
            return True
        return self._user_keys.add(user.key)

    def reset_users(self) -> None:
        self._user_keys.clear()

    def set_last_known_past_time(self, t: int) -> None:
        # server Date headers only ever move the baseline forward
        if int(t) > self._last_known_past_time:
            self._last_known_past_time = int(t)

    def is_debugging(self, event: Event, now_ms: Optional[int] = None) -> bool:
        if not isinstance(event, FeatureRequestEvent) or event.debug_events_until_date is None:
            return False
        now_ms = now_millis() if now_ms is None else int(now_ms)
        until = int(event.debug_events_until_date)
        return until > self._last_known_past_time and until > now_ms

    def summarize_event(self, event: Event) -> bool:
        """
        Count `event` if it is a summarizable feature evaluation.

        Returns False for custom/identify events and for flags with
        track_events set; the caller then emits an individual record.
        """
        if not isinstance(event, FeatureRequestEvent):
            return False
        if event.track_events:
            return False

        key = CounterKey(event.key, event.variation, event.version)
        value = self._state.counters.get(key)
        if value is None:
            self._state.counters[key] = CounterValue(count=1, flag_value=event.value, flag_default=event.default)
        else:
            value.count += 1

        date = int(event.creation_date)
        if self._state.start_date == 0 or date < self._state.start_date:
            self._state.start_date = date
        if date > self._state.end_date:
            self._state.end_date = date
        return True

    def snapshot(self) -> SummaryState:
        """Return the current window and start a fresh one."""
        state = self._state
        self._state = SummaryState()
        return state

    @staticmethod
    def output(snapshot: SummaryState) -> Dict[str, Any]:
        features: Dict[str, Dict[str, Any]] = {}
        for key, value in snapshot.counters.items():
            flag_data = features.get(key.key)
            if flag_data is None:
                flag_data = {"default": value.flag_default, "counters": []}
                features[key.key] = flag_data
            counter: Dict[str, Any] = {"value": value.flag_value, "count": value.count}
            if key.version is None:
                counter["unknown"] = True
            else:
                counter["version"] = key.version
            if key.variation is not None:
                counter["variation"] = key.variation
            counters: List[Dict[str, Any]] = flag_data["counters"]
            counters.append(counter)
        return {
            "startDate": snapshot.start_date,
            "endDate": snapshot.end_date,
            "features": features,
        }
