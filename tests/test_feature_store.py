from __future__ import annotations

from flagsync.core.flags.evaluator import SimpleEvaluator
from flagsync.core.flags.models import FeatureFlag
from flagsync.core.flags.store import InMemoryFeatureStore
from flagsync.core.users import User


def _flag(key, **kw):
    base = {"key": key, "version": 1, "on": True, "variations": [False, True], "offVariation": 0, "fallthroughVariation": 1}
    base.update(kw)
    return FeatureFlag.model_validate(base)


def test_store_init_and_get():
    store = InMemoryFeatureStore()
    assert not store.initialized
    store.init([_flag("a"), _flag("b")])
    assert store.initialized
    assert store.get("a").key == "a"
    assert store.get("zzz") is None
    assert set(store.all()) == {"a", "b"}


def test_upsert_is_version_gated():
    store = InMemoryFeatureStore()
    store.init([_flag("a", version=5)])
    assert store.upsert(_flag("a", version=4)) is False
    assert store.upsert(_flag("a", version=6, on=False)) is True
    assert store.get("a").on is False


def test_delete_leaves_tombstone():
    store = InMemoryFeatureStore()
    store.init([_flag("a", version=1)])
    assert store.delete("a", 2) is True
    assert store.get("a") is None
    assert "a" not in store.all()
    # an older update cannot resurrect it
    assert store.upsert(_flag("a", version=1)) is False


def test_flag_wire_aliases():
    flag = _flag("a", trackEvents=True, debugEventsUntilDate=123, somethingElse="ignored")
    assert flag.track_events is True
    assert flag.debug_events_until_date == 123


def test_evaluator_on_and_off():
    store = InMemoryFeatureStore()
    user = User(key="u")
    ev = SimpleEvaluator()

    on = ev.evaluate(_flag("a"), user, store)
    assert (on.value, on.variation) == (True, 1)
    off = ev.evaluate(_flag("a", on=False), user, store)
    assert (off.value, off.variation) == (False, 0)
    assert off.prerequisite_events == []


def test_evaluator_out_of_range_variation():
    res = SimpleEvaluator().evaluate(_flag("a", fallthroughVariation=9), User(key="u"), InMemoryFeatureStore())
    assert res.value is None
    assert res.variation is None


def test_evaluator_prerequisites_emit_events():
    store = InMemoryFeatureStore()
    store.init([_flag("parent", prerequisites=["child"]), _flag("child", version=7)])
    user = User(key="u")

    res = SimpleEvaluator().evaluate(store.get("parent"), user, store)
    assert res.value is True
    assert len(res.prerequisite_events) == 1
    pe = res.prerequisite_events[0]
    assert pe.key == "child"
    assert pe.prereq_of == "parent"
    assert pe.version == 7
    assert pe.value is True


def test_evaluator_prerequisite_off_serves_off_variation():
    store = InMemoryFeatureStore()
    store.init([_flag("parent", prerequisites=["child"]), _flag("child", on=False)])
    res = SimpleEvaluator().evaluate(store.get("parent"), User(key="u"), store)
    assert res.variation == 0
    assert [e.key for e in res.prerequisite_events] == ["child"]


def test_evaluator_missing_or_cyclic_prerequisite():
    store = InMemoryFeatureStore()
    store.init([_flag("a", prerequisites=["b"]), _flag("b", prerequisites=["a"]), _flag("c", prerequisites=["gone"])])
    user = User(key="u")
    ev = SimpleEvaluator()
    assert ev.evaluate(store.get("c"), user, store).variation == 0
    # a -> b -> a: the inner cycle fails b, so a is off too
    assert ev.evaluate(store.get("a"), user, store).variation == 0
