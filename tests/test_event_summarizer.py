from __future__ import annotations

from flagsync.core.events.models import CustomEvent, FeatureRequestEvent, IdentifyEvent
from flagsync.core.events.summarizer import CounterKey, EventSummarizer
from flagsync.core.users import User


USER = User(key="key")


def _fe(key="flagkey", variation=1, version=11, value="value", default=None, creation_date=1000, track=False, debug_until=None):
    return FeatureRequestEvent(
        key=key,
        user=USER,
        variation=variation,
        version=version,
        value=value,
        default=default,
        creation_date=creation_date,
        track_events=track,
        debug_events_until_date=debug_until,
    )


def test_notice_user_reports_previously_seen_users():
    es = EventSummarizer(100)
    assert es.notice_user(USER) is False
    assert es.notice_user(USER) is True
    es.reset_users()
    assert es.notice_user(USER) is False


def test_notice_user_without_key_counts_as_seen():
    es = EventSummarizer(100)
    assert es.notice_user(None) is True
    assert es.notice_user(User()) is True


def test_summarize_sets_start_and_end_dates():
    es = EventSummarizer(100)
    es.summarize_event(_fe(creation_date=2000))
    es.summarize_event(_fe(creation_date=1000))
    es.summarize_event(_fe(creation_date=1500))
    state = es.snapshot()
    assert state.start_date == 1000
    assert state.end_date == 2000


def test_summarize_increments_counters():
    es = EventSummarizer(100)
    es.summarize_event(_fe(key="key1", variation=1, value="value1", default="default1"))
    es.summarize_event(_fe(key="key1", variation=2, value="value2", default="default1"))
    es.summarize_event(_fe(key="key2", variation=1, version=22, value="value99", default="default2"))
    es.summarize_event(_fe(key="key1", variation=1, value="value1", default="default1"))
    es.summarize_event(_fe(key="badkey", variation=None, version=None, value="default3", default="default3"))

    counters = es.snapshot().counters
    assert counters[CounterKey("key1", 1, 11)].count == 2
    assert counters[CounterKey("key1", 1, 11)].flag_value == "value1"
    assert counters[CounterKey("key1", 2, 11)].count == 1
    assert counters[CounterKey("key2", 1, 22)].count == 1
    assert counters[CounterKey("badkey", None, None)].flag_default == "default3"
    assert len(counters) == 4


def test_non_feature_and_tracked_events_are_not_summarized():
    es = EventSummarizer(100)
    assert es.summarize_event(CustomEvent(key="c", user=USER)) is False
    assert es.summarize_event(IdentifyEvent(user=USER)) is False
    assert es.summarize_event(_fe(track=True)) is False
    assert es.snapshot().is_empty()


def test_snapshot_starts_a_new_window():
    es = EventSummarizer(100)
    es.summarize_event(_fe())
    first = es.snapshot()
    assert not first.is_empty()
    assert es.snapshot().is_empty()


def test_output_shapes_counters():
    es = EventSummarizer(100)
    es.summarize_event(_fe(key="known", variation=0, value=True, default=False, creation_date=5))
    es.summarize_event(_fe(key="missing", variation=None, version=None, value="d", default="d", creation_date=9))

    out = EventSummarizer.output(es.snapshot())
    assert out["startDate"] == 5
    assert out["endDate"] == 9
    assert out["features"]["known"] == {"default": False, "counters": [{"value": True, "count": 1, "version": 11, "variation": 0}]}
    assert out["features"]["missing"] == {"default": "d", "counters": [{"value": "d", "count": 1, "unknown": True}]}


def test_is_debugging_uses_local_and_server_clocks():
    es = EventSummarizer(100)
    ev = _fe(debug_until=10_000)
    assert es.is_debugging(ev, now_ms=9_000) is True
    assert es.is_debugging(ev, now_ms=10_000) is False

    es.set_last_known_past_time(20_000)
    assert es.is_debugging(ev, now_ms=9_000) is False
    assert es.is_debugging(_fe(debug_until=None), now_ms=0) is False
    assert es.is_debugging(CustomEvent(key="c", user=USER), now_ms=0) is False


def test_last_known_past_time_only_moves_forward():
    es = EventSummarizer(100)
    es.set_last_known_past_time(500)
    es.set_last_known_past_time(100)
    assert es.last_known_past_time == 500
