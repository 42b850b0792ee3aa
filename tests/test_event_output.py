from __future__ import annotations

import json

import pytest

from flagsync.core.errors import EventSerializationError
from flagsync.core.events.models import CustomEvent, FeatureRequestEvent, IdentifyEvent
from flagsync.core.events.output import (
    make_feature_output,
    make_index_output,
    make_output,
    make_summary_output,
    serialize_batch,
)
from flagsync.core.users import User


USER = User(key="u1", name="Red")


def test_feature_output_with_user_key():
    ev = FeatureRequestEvent(key="f", user=USER, value=1, default=0, creation_date=7)
    assert make_output(ev, USER, inline_user=False) == {
        "kind": "feature",
        "creationDate": 7,
        "key": "f",
        "userKey": "u1",
        "value": 1,
        "default": 0,
    }


def test_feature_output_optional_fields():
    ev = FeatureRequestEvent(key="f", user=USER, value="a", version=3, variation=0, prereq_of="parent", creation_date=7)
    out = make_output(ev, USER, inline_user=True)
    assert out["user"] == {"key": "u1", "name": "Red"}
    assert out["version"] == 3
    assert out["variation"] == 0
    assert out["prereqOf"] == "parent"


def test_debug_output_always_inlines_user():
    ev = FeatureRequestEvent(key="f", user=USER, creation_date=7)
    out = make_feature_output(ev, USER, inline_user=False, debug=True)
    assert out["kind"] == "debug"
    assert out["user"] == {"key": "u1", "name": "Red"}
    assert "userKey" not in out


def test_identify_and_custom_output():
    ie = IdentifyEvent(user=USER, creation_date=1)
    assert make_output(ie, USER, inline_user=False) == {"kind": "identify", "creationDate": 1, "key": "u1", "user": {"key": "u1", "name": "Red"}}

    ce = CustomEvent(key="buy", user=USER, data=[1, 2], creation_date=2)
    assert make_output(ce, USER, inline_user=False) == {"kind": "custom", "creationDate": 2, "key": "buy", "data": [1, 2], "userKey": "u1"}


def test_index_and_summary_output():
    ie = IdentifyEvent(user=USER, creation_date=1)
    assert make_index_output(ie, USER) == {"kind": "index", "creationDate": 1, "user": {"key": "u1", "name": "Red"}}
    assert make_summary_output({"startDate": 1, "endDate": 2, "features": {}}) == {"kind": "summary", "startDate": 1, "endDate": 2, "features": {}}


def test_unknown_event_type_rejected():
    with pytest.raises(TypeError):
        make_output(object(), USER, inline_user=False)  # type: ignore[arg-type]


def test_serialize_batch():
    data = serialize_batch([{"kind": "custom", "data": "é"}])
    assert json.loads(data.decode("utf-8")) == [{"kind": "custom", "data": "é"}]
    assert b" " not in data


def test_serialize_batch_failure():
    with pytest.raises(EventSerializationError) as ei:
        serialize_batch([{"data": {1, 2}}])
    assert ei.value.code == "serialization_error"


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
def test_serialize_batch_rejects_non_finite_numbers(bad):
    with pytest.raises(EventSerializationError):
        serialize_batch([{"kind": "custom", "data": bad}])


def test_serialize_batch_rejects_excessive_nesting():
    data = []
    for _ in range(100_000):
        data = [data]
    with pytest.raises(EventSerializationError):
        serialize_batch([{"kind": "custom", "data": data}])
