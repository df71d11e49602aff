"""Tests for the SQLite backend adapter (src.client.database)."""

import pytest

from conftest import make_record

from src.client.backend import BackendError
from src.core.models import AuthState


@pytest.fixture
def keys(backend):
    return backend.db.collection("api_keys")


class TestCollection:
    def test_create_returns_wire_shape(self, keys):
        row = keys.create(make_record(tags=["prod"]).to_wire())
        assert row["is_active"] == 1
        assert row["tags"] == '["prod"]'

    def test_duplicate_id_rejected(self, keys):
        keys.create(make_record().to_wire())
        with pytest.raises(BackendError):
            keys.create(make_record().to_wire())

    def test_list_where_and_order(self, keys):
        keys.create(make_record(id="a", created_at="2026-01-01T00:00:00+00:00").to_wire())
        keys.create(make_record(id="b", created_at="2026-03-01T00:00:00+00:00").to_wire())
        keys.create(make_record(id="c", user_id="user-2").to_wire())

        rows = keys.list(where={"user_id": "user-1"}, order_by={"created_at": "desc"})
        assert [r["id"] for r in rows] == ["b", "a"]

        rows = keys.list(where={"user_id": "user-1"}, order_by={"created_at": "asc"})
        assert [r["id"] for r in rows] == ["a", "b"]

    def test_list_unknown_field(self, keys):
        with pytest.raises(BackendError):
            keys.list(where={"colour": "red"})

    def test_update_applies_fields(self, keys):
        keys.create(make_record().to_wire())
        row = keys.update("key_1", {"name": "Renamed", "is_active": 0})
        assert row["name"] == "Renamed"
        assert row["is_active"] == 0
        assert row["api_key"] == "sk-abc123xyz789"

    def test_update_never_changes_identity(self, keys):
        keys.create(make_record().to_wire())
        row = keys.update("key_1", {"id": "other", "user_id": "user-2"})
        assert row["id"] == "key_1"
        assert row["user_id"] == "user-1"

    def test_update_missing(self, keys):
        with pytest.raises(BackendError) as exc:
            keys.update("nope", {"name": "x"})
        assert exc.value.status_code == 404

    def test_delete(self, keys):
        keys.create(make_record().to_wire())
        keys.delete("key_1")
        assert keys.list() == []

    def test_delete_missing(self, keys):
        with pytest.raises(BackendError):
            keys.delete("nope")


class TestDatabase:
    def test_attribute_access(self, backend):
        assert backend.db.api_keys is backend.db.collection("api_keys")

    def test_unknown_collection(self, backend):
        with pytest.raises(BackendError):
            backend.db.collection("passwords")


class TestLocalAuth:
    def test_subscriber_gets_current_state_immediately(self, backend):
        states = []
        backend.auth.on_auth_state_changed(states.append)
        assert states == [AuthState(user=None, is_loading=False)]

    def test_login_logout(self, backend, user):
        states = []
        backend.auth.on_auth_state_changed(states.append)
        backend.auth.login()
        backend.auth.logout()
        assert [s.user for s in states] == [None, user, None]
        assert backend.auth.requires_credentials is False

    def test_unsubscribe(self, backend):
        states = []
        unsubscribe = backend.auth.on_auth_state_changed(states.append)
        unsubscribe()
        unsubscribe()
        backend.auth.login()
        assert len(states) == 1
