"""Tests for src.client.controller against the local SQLite backend."""

from datetime import timedelta
from unittest.mock import MagicMock

from conftest import NOW, make_record

from src.client.backend import BackendError
from src.client.controller import ApiKeyController
from src.core.models import AuthState, ApiKeyDraft, ApiKeyUpdate, AuthUser


def _signed_in(controller, backend):
    backend.auth.login()
    assert controller.user is not None
    return controller


class TestAuth:
    def test_starts_signed_out(self, controller):
        assert controller.user is None
        assert controller.is_loading is False
        assert controller.records == []

    def test_login_loads_records(self, controller, backend):
        backend.db.collection("api_keys").create(make_record(id="key_a").to_wire())
        _signed_in(controller, backend)
        assert [r.id for r in controller.records] == ["key_a"]

    def test_logout_clears_records(self, controller, backend):
        _signed_in(controller, backend)
        controller.add_record(ApiKeyDraft(name="OpenAI", api_key="sk-abc123xyz789"))
        assert controller.records

        backend.auth.logout()
        assert controller.user is None
        assert controller.records == []

    def test_other_users_records_are_not_loaded(self, controller, backend):
        backend.db.collection("api_keys").create(make_record(id="key_other", user_id="user-2").to_wire())
        _signed_in(controller, backend)
        assert controller.records == []

    def test_detach_stops_following_auth(self, controller, backend):
        controller.detach()
        backend.auth.login()
        assert controller.user is None

    def test_loading_state_is_tracked(self, backend):
        ctrl = ApiKeyController(backend)
        ctrl.on_auth_change(AuthState(user=None, is_loading=True))
        assert ctrl.is_loading is True


class TestAddRecord:
    def test_minimal_draft_gets_defaults(self, controller, backend, notifications):
        _signed_in(controller, backend)
        controller.open_add_dialog()

        ok = controller.add_record(ApiKeyDraft(name="OpenAI", api_key="sk-abc123xyz789"))

        assert ok is True
        assert len(controller.records) == 1
        record = controller.records[0]
        assert record.name == "OpenAI"
        assert record.api_key == "sk-abc123xyz789"
        assert record.category == "general"
        assert record.tags == []
        assert record.is_active is True
        assert record.user_id == "user-1"
        assert record.created_at == record.updated_at == NOW
        assert record.id.startswith("key_")
        assert controller.is_add_dialog_open is False
        assert notifications[-1].is_error is False

    def test_newest_first(self, controller, backend):
        _signed_in(controller, backend)
        controller.add_record(ApiKeyDraft(name="first", api_key="k1"))
        controller.add_record(ApiKeyDraft(name="second", api_key="k2"))
        assert [r.name for r in controller.records] == ["second", "first"]

    def test_blank_name_is_rejected(self, controller, backend, notifications):
        _signed_in(controller, backend)
        ok = controller.add_record(ApiKeyDraft(name="   ", api_key="sk-1"))
        assert ok is False
        assert controller.records == []
        assert backend.db.collection("api_keys").list() == []
        assert notifications[-1].is_error

    def test_blank_secret_is_rejected(self, controller, backend):
        _signed_in(controller, backend)
        assert controller.add_record(ApiKeyDraft(name="OpenAI", api_key="")) is False

    def test_signed_out_add_fails(self, controller):
        assert controller.add_record(ApiKeyDraft(name="OpenAI", api_key="sk-1")) is False

    def test_tags_are_stored(self, controller, backend):
        _signed_in(controller, backend)
        controller.add_record(ApiKeyDraft(name="Stripe", api_key="sk_live_1", category="payment", tags=["Prod", "billing"]))
        record = controller.records[0]
        assert record.tags == ["prod", "billing"]
        assert record.category == "payment"


class TestUpdateRecord:
    def test_toggle_active_changes_only_flag_and_timestamp(self, controller, backend):
        _signed_in(controller, backend)
        controller.add_record(ApiKeyDraft(name="OpenAI", api_key="sk-abc123xyz789", tags=["ai"]))
        before = controller.records[0]

        assert controller.toggle_active(before) is True

        after = controller.records[0]
        assert after.is_active is False
        assert after.updated_at > before.updated_at
        assert after.updated_at == NOW + timedelta(seconds=1)
        untouched = {"is_active", "updated_at"}
        assert after.model_dump(exclude=untouched) == before.model_dump(exclude=untouched)

    def test_toggle_twice_reactivates(self, controller, backend):
        _signed_in(controller, backend)
        controller.add_record(ApiKeyDraft(name="OpenAI", api_key="sk-1"))
        controller.toggle_active(controller.records[0])
        controller.toggle_active(controller.records[0])
        assert controller.records[0].is_active is True

    def test_partial_update_keeps_other_fields(self, controller, backend):
        _signed_in(controller, backend)
        controller.add_record(ApiKeyDraft(name="OpenAI", api_key="sk-1", description="chat"))
        record = controller.records[0]

        controller.update_record(record.id, ApiKeyUpdate(name="OpenAI prod"))

        updated = controller.records[0]
        assert updated.name == "OpenAI prod"
        assert updated.description == "chat"
        assert updated.api_key == "sk-1"
        assert updated.created_at == record.created_at

    def test_update_can_clear_description(self, controller, backend):
        _signed_in(controller, backend)
        controller.add_record(ApiKeyDraft(name="OpenAI", api_key="sk-1", description="chat"))
        controller.update_record(controller.records[0].id, ApiKeyUpdate(description=None))
        assert controller.records[0].description is None

    def test_update_missing_record_reports_error(self, controller, backend, notifications):
        _signed_in(controller, backend)
        assert controller.update_record("key_missing", ApiKeyUpdate(name="x")) is False
        assert notifications[-1].message == "Failed to update API key"


class TestDeleteRecord:
    def test_delete_removes_record(self, controller, backend, notifications):
        _signed_in(controller, backend)
        controller.add_record(ApiKeyDraft(name="OpenAI", api_key="sk-1"))
        assert controller.delete_record(controller.records[0].id) is True
        assert controller.records == []
        assert notifications[-1].message == "API key deleted successfully"

    def test_delete_missing_record_reports_error(self, controller, backend, notifications):
        _signed_in(controller, backend)
        assert controller.delete_record("key_missing") is False
        assert notifications[-1].message == "Failed to delete API key"


class TestFailures:
    def _controller(self, notifications):
        backend = MagicMock()
        ctrl = ApiKeyController(backend, notify=notifications.append)
        ctrl.user = AuthUser(id="user-1")
        return ctrl, backend.db.collection.return_value

    def test_load_failure_keeps_previous_records(self, notifications):
        ctrl, collection = self._controller(notifications)
        existing = [make_record()]
        ctrl.records = existing
        collection.list.side_effect = BackendError("boom")

        assert ctrl.load_records() is False
        assert ctrl.records is existing
        assert notifications[-1].message == "Failed to load API keys"
        assert notifications[-1].is_error

    def test_malformed_rows_count_as_load_failure(self, notifications):
        ctrl, collection = self._controller(notifications)
        collection.list.return_value = [{"id": "key_1"}]
        assert ctrl.load_records() is False
        assert ctrl.records == []

    def test_null_flag_and_tags_load_as_inactive_untagged(self, notifications):
        ctrl, collection = self._controller(notifications)
        row = make_record().to_wire()
        row.update(is_active=None, tags="null")
        collection.list.return_value = [row]

        assert ctrl.load_records() is True
        assert ctrl.records[0].is_active is False
        assert ctrl.records[0].tags == []
        assert notifications == []

    def test_non_list_tags_are_a_load_failure(self, notifications):
        ctrl, collection = self._controller(notifications)
        existing = [make_record()]
        ctrl.records = existing
        row = make_record(id="key_2").to_wire()
        row["tags"] = "42"
        collection.list.return_value = [row]

        assert ctrl.load_records() is False
        assert ctrl.records is existing
        assert notifications[-1].message == "Failed to load API keys"

    def test_add_failure_keeps_dialog_open(self, notifications):
        ctrl, collection = self._controller(notifications)
        ctrl.open_add_dialog()
        collection.create.side_effect = BackendError("boom")

        assert ctrl.add_record(ApiKeyDraft(name="OpenAI", api_key="sk-1")) is False
        assert ctrl.is_add_dialog_open is True
        assert notifications[-1].message == "Failed to add API key"
        collection.list.assert_not_called()

    def test_update_sends_only_given_fields(self, notifications):
        ctrl, collection = self._controller(notifications)
        collection.list.return_value = []
        ctrl.update_record("key_1", ApiKeyUpdate(is_active=False))

        record_id, payload = collection.update.call_args.args
        assert record_id == "key_1"
        assert set(payload) == {"is_active", "updated_at"}
        assert payload["is_active"] == 0

    def test_mutations_reload_from_backend(self, notifications):
        ctrl, collection = self._controller(notifications)
        collection.list.return_value = []
        ctrl.delete_record("key_1")
        collection.delete.assert_called_once_with("key_1")
        collection.list.assert_called_once_with(where={"user_id": "user-1"}, order_by={"created_at": "desc"})


class TestViewState:
    def test_filtered_view_and_stats(self, controller, backend):
        _signed_in(controller, backend)
        controller.add_record(ApiKeyDraft(name="OpenAI", api_key="sk-1", category="ai"))
        controller.add_record(ApiKeyDraft(name="Stripe", api_key="sk-2", category="payment", tags=["billing"]))

        controller.set_category("payment")
        assert [r.name for r in controller.filtered_view()] == ["Stripe"]
        assert controller.stats.total == 1

        controller.set_category("all")
        controller.set_search_query("BILL")
        assert [r.name for r in controller.filtered_view()] == ["Stripe"]

        controller.set_search_query("")
        assert controller.stats.total == 2
        assert controller.stats.categories == 2

    def test_listeners_are_notified(self, controller):
        calls = []
        unsubscribe = controller.subscribe(lambda: calls.append(1))
        controller.set_search_query("x")
        unsubscribe()
        controller.set_search_query("y")
        assert calls == [1]
