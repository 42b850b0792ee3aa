from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from flagsync.core.errors import EventSerializationError
from flagsync.core.events.models import CustomEvent, Event, FeatureRequestEvent, IdentifyEvent
from flagsync.core.users import User


FEATURE_KIND = "feature"
DEBUG_KIND = "debug"
IDENTIFY_KIND = "identify"
CUSTOM_KIND = "custom"
INDEX_KIND = "index"
SUMMARY_KIND = "summary"


def _user_fields(out: Dict[str, Any], user: Optional[User], *, inline_user: bool) -> None:
    if user is None:
        return
    if inline_user:
        out["user"] = user.to_wire()
    elif user.key is not None:
        out["userKey"] = user.key


def make_feature_output(event: FeatureRequestEvent, user: Optional[User], *, inline_user: bool, debug: bool = False) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "kind": DEBUG_KIND if debug else FEATURE_KIND,
        "creationDate": event.creation_date,
        "key": event.key,
    }
    # debug records always carry the full user
    _user_fields(out, user, inline_user=inline_user or debug)
    out["value"] = event.value
    out["default"] = event.default
    if event.version is not None:
        out["version"] = event.version
    if event.variation is not None:
        out["variation"] = event.variation
    if event.prereq_of is not None:
        out["prereqOf"] = event.prereq_of
    return out


def make_identify_output(event: IdentifyEvent, user: Optional[User]) -> Dict[str, Any]:
    out: Dict[str, Any] = {"kind": IDENTIFY_KIND, "creationDate": event.creation_date}
    if user is not None:
        if user.key is not None:
            out["key"] = user.key
        out["user"] = user.to_wire()
    return out


def make_custom_output(event: CustomEvent, user: Optional[User], *, inline_user: bool) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "kind": CUSTOM_KIND,
        "creationDate": event.creation_date,
        "key": event.key,
        "data": event.data,
    }
    _user_fields(out, user, inline_user=inline_user)
    return out


def make_index_output(event: Event, user: User) -> Dict[str, Any]:
    return {"kind": INDEX_KIND, "creationDate": event.creation_date, "user": user.to_wire()}


def make_summary_output(summary: Dict[str, Any]) -> Dict[str, Any]:
    return {"kind": SUMMARY_KIND, **summary}


def make_output(event: Event, user: Optional[User], *, inline_user: bool) -> Dict[str, Any]:
    """Shape the individual record for `event`; `user` must already be scrubbed."""
    if isinstance(event, FeatureRequestEvent):
        return make_feature_output(event, user, inline_user=inline_user)
    if isinstance(event, CustomEvent):
        return make_custom_output(event, user, inline_user=inline_user)
    if isinstance(event, IdentifyEvent):
        return make_identify_output(event, user)
    raise TypeError(f"unknown event type: {type(event).__name__}")


def serialize_batch(records: List[Dict[str, Any]]) -> bytes:
    try:
        return json.dumps(records, ensure_ascii=False, allow_nan=False, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError, RecursionError) as e:
        raise EventSerializationError(records=len(records), error=str(e)) from e
