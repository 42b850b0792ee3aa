from __future__ import annotations

import pytest

from flagsync.core.config import EventsConfig
from flagsync.core.users import User
from .helpers.fakes import FakeSession


SDK_KEY = "SDK_KEY"


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def events_cfg():
    """
    Factory for an EventsConfig with timers far enough out that only explicit
    flushes send anything.
    """

    def make(**overrides):
        base = {
            "capacity": 1000,
            "flush_interval_seconds": 3600,
            "user_keys_capacity": 1000,
            "user_keys_flush_interval_seconds": 3600,
            "events_uri": "https://events.test",
        }
        base.update(overrides)
        return EventsConfig(**base)

    return make


@pytest.fixture
def make_processor(session, events_cfg):
    from flagsync.core.events.processor import EventProcessor

    created = []

    def make(session_override=None, rng=None, **cfg_overrides):
        ep = EventProcessor(SDK_KEY, cfg=events_cfg(**cfg_overrides), session=session_override or session, rng=rng)
        created.append(ep)
        return ep

    yield make
    for ep in created:
        ep.close()


@pytest.fixture
def default_user():
    return User(key="userKey", name="Red")
