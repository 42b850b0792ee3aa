from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from flagsync.core.users import User

if TYPE_CHECKING:
    from flagsync.core.flags.models import FeatureFlag


def now_millis() -> int:
    return int(time.time() * 1000)


class BaseEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    creation_date: int = Field(default_factory=now_millis, ge=0)
    user: Optional[User] = None


class FeatureRequestEvent(BaseEvent):
    key: str
    value: Any = None
    default: Any = None
    variation: Optional[int] = None
    version: Optional[int] = None
    prereq_of: Optional[str] = None
    track_events: bool = False
    debug_events_until_date: Optional[int] = None


class CustomEvent(BaseEvent):
    key: str
    data: Any = None


class IdentifyEvent(BaseEvent):
    pass


Event = Union[FeatureRequestEvent, CustomEvent, IdentifyEvent]


def new_feature_request_event(
    key: str,
    flag: Optional["FeatureFlag"],
    user: Optional[User],
    variation: Optional[int],
    value: Any,
    default: Any,
    prereq_of: Optional[str] = None,
) -> FeatureRequestEvent:
    """Normally built during flag evaluation; exposed for callers that evaluate elsewhere."""
    if flag is None:
        return FeatureRequestEvent(key=key, user=user, variation=variation, value=value, default=default, prereq_of=prereq_of)
    return FeatureRequestEvent(
        key=key,
        user=user,
        variation=variation,
        value=value,
        default=default,
        prereq_of=prereq_of,
        version=flag.version,
        track_events=bool(flag.track_events),
        debug_events_until_date=flag.debug_events_until_date,
    )


def new_custom_event(key: str, user: Optional[User], data: Any = None) -> CustomEvent:
    return CustomEvent(key=key, user=user, data=data)


def new_identify_event(user: Optional[User]) -> IdentifyEvent:
    return IdentifyEvent(user=user)
