from datetime import datetime, timedelta, timezone

import pytest

from plugins.energy_converter.api.sessions import SessionNotFoundError, SessionStore
from plugins.energy_converter.core import EnergyController


def test_sessions_expire_after_ttl():
    store = SessionStore(ttl=timedelta(minutes=5))
    session = store.create(EnergyController())
    assert store.get(session.session_id) is session

    session.last_accessed = datetime.now(timezone.utc) - timedelta(minutes=10)
    with pytest.raises(SessionNotFoundError):
        store.get(session.session_id)


def test_oldest_session_is_evicted_at_capacity():
    store = SessionStore(max_sessions=2)
    first = store.create(EnergyController())
    first.last_accessed = datetime.now(timezone.utc) - timedelta(minutes=1)
    second = store.create(EnergyController())
    third = store.create(EnergyController())
    assert len(store) == 2
    with pytest.raises(SessionNotFoundError):
        store.get(first.session_id)
    assert store.get(second.session_id) is second
    assert store.get(third.session_id) is third


def test_configure_falls_back_on_bad_settings():
    store = SessionStore()
    store.configure({"session_ttl_minutes": "soon", "max_sessions": "0"})
    assert store.ttl == timedelta(minutes=30)
    assert store.max_sessions == 1
