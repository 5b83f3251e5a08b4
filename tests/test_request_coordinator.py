"""Tests for mutation sequencing, error surfacing and the in-flight guard."""
import asyncio
import copy

from simple_vault.secrets.domains.models import FormState, ModalState
from simple_vault.secrets.workflows.request_coordinator import (
    CREATE_FAILED_MESSAGE,
    DELETE_FAILED_MESSAGE,
    UPDATE_FAILED_MESSAGE,
)
from simple_vault.secrets.workflows.secret_store import LOAD_FAILED_MESSAGE


def _compose(session, name, data, description=""):
    session.modal.open_create()
    session.modal.set_name(name)
    session.modal.set_description(description)
    for key, value in data.items():
        session.editor.add(key, value)


class TestCreate:

    def test_round_trip(self, session, fake_vault):
        _compose(session, "app", {"a": "1"})

        assert asyncio.run(session.coordinator.create()) is True

        secrets = session.store.secrets
        assert len(secrets) == 1
        assert secrets[0].data == {"a": "1"}

    def test_success_closes_dialog_and_discards_draft(self, session, fake_vault):
        _compose(session, "app", {"a": "1"}, description="desc")

        asyncio.run(session.coordinator.create())

        assert session.modal.state is ModalState.CLOSED
        assert session.state.form == FormState()

    def test_sends_full_form_payload(self, session, fake_vault):
        _compose(session, "app", {"a": "1"}, description="desc")

        asyncio.run(session.coordinator.create())

        method, url, payload = fake_vault.requests_for("POST")[0]
        assert url == "/secrets"
        assert payload == {"name": "app", "description": "desc", "data": {"a": "1"}}

    def test_reload_happens_before_close(self, session, fake_vault, monkeypatch):
        observed = []
        original_load = session.store.load

        async def load_and_observe():
            result = await original_load()
            observed.append(session.modal.state)
            return result

        monkeypatch.setattr(session.store, "load", load_and_observe)
        _compose(session, "app", {"a": "1"})

        asyncio.run(session.coordinator.create())

        assert observed == [ModalState.CREATE_OPEN]
        assert session.modal.state is ModalState.CLOSED

    def test_server_failure_keeps_dialog_and_draft(self, session, fake_vault):
        fake_vault.failures["POST"] = 500
        _compose(session, "app", {"a": "1"})

        assert asyncio.run(session.coordinator.create()) is False

        assert session.error == CREATE_FAILED_MESSAGE
        assert session.modal.state is ModalState.CREATE_OPEN
        assert session.state.form.data == {"a": "1"}
        assert fake_vault.requests_for("GET") == []

    def test_network_failure_sets_same_message(self, session, fake_vault):
        fake_vault.failures["POST"] = "network"
        _compose(session, "app", {"a": "1"})

        assert asyncio.run(session.coordinator.create()) is False
        assert session.error == CREATE_FAILED_MESSAGE

    def test_resubmit_after_failure_succeeds_and_clears_error(self, session, fake_vault):
        fake_vault.failures["POST"] = 503
        _compose(session, "app", {"a": "1"})
        asyncio.run(session.coordinator.create())

        del fake_vault.failures["POST"]
        assert asyncio.run(session.coordinator.create()) is True

        assert session.error is None
        assert len(session.store.secrets) == 1

    def test_failed_reload_after_create_still_closes(self, session, fake_vault):
        fake_vault.failures["GET"] = 500
        _compose(session, "app", {"a": "1"})

        assert asyncio.run(session.coordinator.create()) is True

        assert session.modal.state is ModalState.CLOSED
        assert session.error == LOAD_FAILED_MESSAGE
        assert len(fake_vault.secrets) == 1

    def test_create_with_explicit_form(self, session, fake_vault):
        form = FormState(name="direct", data={"k": "v"})

        assert asyncio.run(session.coordinator.create(form)) is True
        assert session.store.find_by_name("direct")[0].data == {"k": "v"}


class TestUpdate:

    def test_update_replaces_secret(self, session, fake_vault, db_secret_id):
        asyncio.run(session.store.load())
        session.modal.open_edit(session.store.get(db_secret_id))
        session.editor.add("pass", "y")
        session.editor.remove("user")

        assert asyncio.run(session.coordinator.update()) is True

        assert session.store.get(db_secret_id).data == {"pass": "y"}
        assert session.modal.state is ModalState.CLOSED

    def test_draft_isolated_until_submit(self, session, fake_vault, db_secret_id):
        asyncio.run(session.store.load())
        session.modal.open_edit(session.store.get(db_secret_id))

        session.editor.remove("user")

        assert session.store.get(db_secret_id).data == {"user": "root", "pass": "x"}

    def test_failed_update_is_non_destructive(self, session, fake_vault, db_secret_id):
        asyncio.run(session.store.load())
        session.modal.open_edit(session.store.get(db_secret_id))
        session.editor.add("pass", "changed")
        session.modal.set_name("renamed")
        secrets_before = copy.deepcopy(session.store.secrets)
        form_before = copy.deepcopy(session.state.form)
        fake_vault.failures["PUT"] = 500

        assert asyncio.run(session.coordinator.update()) is False

        assert session.store.secrets == secrets_before
        assert session.state.form == form_before
        assert session.modal.state is ModalState.EDIT_OPEN
        assert session.modal.editing_id == db_secret_id
        assert session.error == UPDATE_FAILED_MESSAGE

    def test_update_without_selection_does_nothing(self, session, fake_vault):
        assert asyncio.run(session.coordinator.update()) is False
        assert fake_vault.requests == []

    def test_update_missing_secret_reports_failure(self, session, fake_vault):
        form = FormState(name="ghost", data={"k": "v"})

        assert asyncio.run(session.coordinator.update("sec-404", form)) is False
        assert session.error == UPDATE_FAILED_MESSAGE


class TestRemove:

    def test_scenario_create_decline_then_confirm_delete(self, session, fake_vault, confirm):
        _compose(session, "db", {"user": "root", "pass": "x"})
        asyncio.run(session.coordinator.create())
        secrets = session.store.secrets
        assert len(secrets) == 1
        assert secrets[0].name == "db"
        assert len(secrets[0].data) == 2
        secret_id = secrets[0].id

        confirm.answer = False
        assert asyncio.run(session.coordinator.remove(secret_id)) is False
        assert fake_vault.requests_for("DELETE") == []
        assert [s.id for s in session.store.secrets] == [secret_id]

        confirm.answer = True
        assert asyncio.run(session.coordinator.remove(secret_id)) is True
        assert session.store.secrets == []
        assert confirm.asked == [secret_id, secret_id]

    def test_declined_delete_leaves_state_untouched(self, session, fake_vault, confirm, db_secret_id):
        asyncio.run(session.store.load())
        session.state.error.set("Failed to fetch secrets")
        confirm.answer = False

        asyncio.run(session.coordinator.remove(db_secret_id))

        assert session.error == "Failed to fetch secrets"
        assert len(session.store.secrets) == 1

    def test_failed_delete_keeps_list(self, session, fake_vault, db_secret_id):
        asyncio.run(session.store.load())
        fake_vault.failures["DELETE"] = 500

        assert asyncio.run(session.coordinator.remove(db_secret_id)) is False

        assert session.error == DELETE_FAILED_MESSAGE
        assert len(session.store.secrets) == 1

    def test_delete_without_confirmation_handler_is_declined(self, fake_vault, db_secret_id):
        from simple_vault.secrets.workflows.session import VaultSession

        session = VaultSession()

        assert asyncio.run(session.coordinator.remove(db_secret_id)) is False
        assert db_secret_id in fake_vault.secrets


class TestInFlightGuard:
    """A second submit for the same target is rejected while the first runs."""

    def test_double_create_issues_one_request(self, session, fake_vault):
        _compose(session, "app", {"a": "1"})

        async def double_submit():
            return await asyncio.gather(
                session.coordinator.create(),
                session.coordinator.create(),
            )

        results = asyncio.run(double_submit())

        assert sorted(results) == [False, True]
        assert len(fake_vault.requests_for("POST")) == 1
        assert len(fake_vault.secrets) == 1
        assert session.state.in_flight == set()

    def test_different_targets_run_concurrently(self, session, fake_vault, db_secret_id):
        other_id = fake_vault.add_secret("cache", {"k": "v"})
        asyncio.run(session.store.load())

        async def delete_both():
            return await asyncio.gather(
                session.coordinator.remove(db_secret_id),
                session.coordinator.remove(other_id),
            )

        assert asyncio.run(delete_both()) == [True, True]
        assert fake_vault.secrets == {}

    def test_guard_released_after_failure(self, session, fake_vault):
        fake_vault.failures["POST"] = 500
        _compose(session, "app", {"a": "1"})
        asyncio.run(session.coordinator.create())

        assert session.coordinator.in_flight("create") is False


class TestSubmit:

    def test_submit_creates_from_create_dialog(self, session, fake_vault):
        _compose(session, "app", {"a": "1"})

        assert asyncio.run(session.coordinator.submit()) is True
        assert len(fake_vault.requests_for("POST")) == 1

    def test_submit_updates_from_edit_dialog(self, session, fake_vault, db_secret_id):
        asyncio.run(session.store.load())
        session.modal.open_edit(session.store.get(db_secret_id))

        assert asyncio.run(session.coordinator.submit()) is True
        assert fake_vault.requests_for("PUT")[0][1] == f"/secrets/{db_secret_id}"

    def test_submit_with_no_dialog_is_noop(self, session, fake_vault):
        assert asyncio.run(session.coordinator.submit()) is False
        assert fake_vault.requests == []


def test_dismiss_error(session):
    session.state.error.set(CREATE_FAILED_MESSAGE)

    session.coordinator.dismiss_error()

    assert session.error is None


class TestDialogOwnership:
    """A finished request only closes the dialog that issued it."""

    def test_dialog_opened_during_create_survives(self, session, fake_vault, db_secret_id):
        asyncio.run(session.store.load())
        db_secret = session.store.get(db_secret_id)
        _compose(session, "app", {"a": "1"})

        async def switch_dialog_mid_request():
            task = asyncio.ensure_future(session.coordinator.create())
            await asyncio.sleep(0)
            session.modal.cancel()
            session.modal.open_edit(db_secret)
            session.editor.add("pass", "new-draft-value")
            return await task

        assert asyncio.run(switch_dialog_mid_request()) is True

        assert session.modal.state is ModalState.EDIT_OPEN
        assert session.modal.editing_id == db_secret_id
        assert session.state.form.data == {"user": "root", "pass": "new-draft-value"}
        assert len(session.store.secrets) == 2

    def test_reopened_create_dialog_survives(self, session, fake_vault):
        _compose(session, "first", {"a": "1"})

        async def reopen_mid_request():
            task = asyncio.ensure_future(session.coordinator.create())
            await asyncio.sleep(0)
            session.modal.cancel()
            session.modal.open_create()
            session.modal.set_name("second")
            return await task

        assert asyncio.run(reopen_mid_request()) is True

        assert session.modal.state is ModalState.CREATE_OPEN
        assert session.state.form.name == "second"

    def test_explicit_form_leaves_open_draft(self, session, fake_vault):
        _compose(session, "draft", {"a": "1"})

        assert asyncio.run(session.coordinator.create(FormState(name="direct", data={"k": "v"}))) is True

        assert session.modal.state is ModalState.CREATE_OPEN
        assert session.state.form.name == "draft"
        assert session.state.form.data == {"a": "1"}

    def test_update_of_other_secret_leaves_edit_dialog(self, session, fake_vault, db_secret_id):
        other_id = fake_vault.add_secret("cache", {"k": "v"})
        asyncio.run(session.store.load())
        session.modal.open_edit(session.store.get(db_secret_id))

        assert asyncio.run(session.coordinator.update(other_id)) is True

        assert session.modal.state is ModalState.EDIT_OPEN
        assert session.modal.editing_id == db_secret_id
