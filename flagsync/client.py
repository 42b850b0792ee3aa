from __future__ import annotations

import logging
from typing import Any, Optional

from flagsync.core.config import ClientConfig
from flagsync.core.errors import FlagSyncError
from flagsync.core.events.models import Event, new_custom_event, new_feature_request_event, new_identify_event
from flagsync.core.events.processor import EventProcessor
from flagsync.core.events.sender import EventSender
from flagsync.core.flags.evaluator import Evaluator, SimpleEvaluator
from flagsync.core.flags.store import InMemoryFeatureStore
from flagsync.core.logger import get_logger
from flagsync.core.users import User


class FlagClient:
    """
    Application-facing entry point: evaluates flags from the local store and
    reports every evaluation, identify and track call to the event pipeline.

    Example:
        >>> client = FlagClient("sdk-key", ClientConfig())
        >>> client.variation("new-checkout", User(key="u1"), False)
        False
        >>> client.close()
    """

    def __init__(
        self,
        sdk_key: str,
        config: Optional[ClientConfig] = None,
        *,
        store: Optional[InMemoryFeatureStore] = None,
        evaluator: Optional[Evaluator] = None,
        sender: Optional[EventSender] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or ClientConfig(sdk_key=sdk_key)
        self.sdk_key = sdk_key or self.config.sdk_key
        self.logger = logger or get_logger("client")
        self.store = store or InMemoryFeatureStore()
        self.evaluator: Evaluator = evaluator or SimpleEvaluator()
        self._events: Optional[EventProcessor] = None
        if not self.config.offline:
            self._events = EventProcessor(self.sdk_key, cfg=self.config.events, sender=sender, logger=self.logger.getChild("events"))
        else:
            self.logger.info("Started flagsync client in offline mode")

    @property
    def offline(self) -> bool:
        return bool(self.config.offline)

    def variation(self, key: str, user: Optional[User], default: Any) -> Any:
        if self.offline:
            return default
        if user is None or not user.key:
            self.logger.warning(f"User or user key is missing when evaluating flag {key!r}; returning default")
            return default
        flag = self.store.get(key)
        if flag is None:
            self.logger.info(f"Unknown feature flag {key!r}; returning default value")
            self._send(new_feature_request_event(key, None, user, None, default, default))
            return default
        try:
            result = self.evaluator.evaluate(flag, user, self.store)
        except Exception as e:  # noqa: BLE001
            self.logger.error(f"Error evaluating flag {key!r}: {e}")
            self._send(new_feature_request_event(key, flag, user, None, default, default))
            return default
        for ev in result.prerequisite_events:
            self._send(ev)
        value = default if result.value is None else result.value
        self._send(new_feature_request_event(key, flag, user, result.variation, value, default))
        return value

    def bool_variation(self, key: str, user: Optional[User], default: bool) -> bool:
        value = self.variation(key, user, default)
        if not isinstance(value, bool):
            self.logger.warning(f"Flag {key!r} did not evaluate to a boolean; returning default")
            return default
        return value

    def identify(self, user: Optional[User]) -> None:
        if user is None or not user.key:
            self.logger.warning("identify called with a missing user or user key")
            return
        self._send(new_identify_event(user))

    def track(self, event_key: str, user: Optional[User], data: Any = None) -> None:
        if user is None or not user.key:
            self.logger.warning("track called with a missing user or user key")
            return
        self._send(new_custom_event(event_key, user, data))

    def flush(self, wait: bool = False) -> Optional[FlagSyncError]:
        if self._events is None:
            return None
        return self._events.flush(wait=wait)

    def close(self) -> Optional[FlagSyncError]:
        if self._events is None:
            return None
        return self._events.close()

    def __enter__(self) -> "FlagClient":
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.close()

    def _send(self, event: Event) -> None:
        if self._events is not None:
            self._events.send_event(event)
