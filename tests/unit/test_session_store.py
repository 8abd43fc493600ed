"""
Unit tests for SessionStore.

Run: pytest tests/unit/test_session_store.py -v
"""

from datetime import datetime, timedelta

import pytest

from exceptions import SessionNotFoundError
from services.session_store import SessionStore


def _expire(store: SessionStore, session_id: str):
    _, session = store._sessions[session_id]
    store._sessions[session_id] = (datetime.now() - timedelta(seconds=1), session)


class TestSessionStore:
    """Tests for create(), get() and delete()"""

    def test_create_and_get(self, fake_gateway, test_settings):
        store = SessionStore()

        session = store.create(fake_gateway, test_settings)

        assert store.get(session.session_id) is session
        assert len(store) == 1

    def test_unknown_id_raises(self):
        with pytest.raises(SessionNotFoundError):
            SessionStore().get("missing")

    def test_expired_session_removed(self, fake_gateway, test_settings):
        store = SessionStore()
        session = store.create(fake_gateway, test_settings)
        _expire(store, session.session_id)

        with pytest.raises(SessionNotFoundError):
            store.get(session.session_id)

        assert len(store) == 0

    def test_running_session_not_expired(self, fake_gateway, test_settings):
        store = SessionStore()
        session = store.create(fake_gateway, test_settings)
        session._busy = True
        _expire(store, session.session_id)

        assert store.get(session.session_id) is session

    def test_create_cleans_up_expired(self, fake_gateway, test_settings):
        store = SessionStore()
        old = store.create(fake_gateway, test_settings)
        _expire(store, old.session_id)

        store.create(fake_gateway, test_settings)

        assert len(store) == 1

    def test_delete_ignores_unknown(self, fake_gateway, test_settings):
        store = SessionStore()
        session = store.create(fake_gateway, test_settings)

        store.delete(session.session_id)
        store.delete(session.session_id)

        assert len(store) == 0
