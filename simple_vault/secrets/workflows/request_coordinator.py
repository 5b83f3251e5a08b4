"""Sequencing of create/update/delete calls against the vault."""
import logging
from functools import partial
from typing import Any, Awaitable, Callable, Optional

from ..domains.api_client import VaultAPIClient
from ..domains.errors import VaultError
from ..domains.models import AppState, FormState, ModalState
from .modal_controller import ModalController
from .secret_store import SecretStore

logger = logging.getLogger(__name__)

CREATE_FAILED_MESSAGE = "Failed to create secret"
UPDATE_FAILED_MESSAGE = "Failed to update secret"
DELETE_FAILED_MESSAGE = "Failed to delete secret"

# In-flight key used for creates; updates and deletes use the secret id
CREATE_TARGET = "create"

# Asked before a delete is issued; receives the secret id
ConfirmCallback = Callable[[str], bool]


def _decline(secret_id: str) -> bool:
    logger.warning(f"No confirmation handler configured, not deleting {secret_id}")
    return False


class RequestCoordinator:
    """
    Issues mutations and keeps the rest of the state consistent with them.

    For every operation:
      - failure (transport or non-2xx) sets a fixed, operation-specific error
        message and touches nothing else, so the dialog and draft survive
      - success reloads the full list from the server, waits for it, then
        closes the dialog and discards the draft, provided the dialog that
        was open when the request started is still open. Explicit forms
        passed to create or update leave any open dialog alone.

    A second request for a target that is still in flight is rejected.
    """

    def __init__(
        self,
        state: AppState,
        api: VaultAPIClient,
        store: SecretStore,
        modal: ModalController,
        confirm: Optional[ConfirmCallback] = None,
    ):
        self._state = state
        self._api = api
        self._store = store
        self._modal = modal
        self._confirm = confirm or _decline

    def in_flight(self, target: str) -> bool:
        return target in self._state.in_flight

    async def create(self, form: Optional[FormState] = None) -> bool:
        """
        Create a secret from ``form`` (the open draft by default).

        Returns:
            True if the server accepted the secret
        """
        dialog = self._modal.current_dialog() if form is None else None
        form = self._state.form if form is None else form
        call = partial(self._api.create_secret, form.to_payload())
        return await self._run(CREATE_TARGET, call, CREATE_FAILED_MESSAGE, dialog)

    async def update(self, secret_id: Optional[str] = None, form: Optional[FormState] = None) -> bool:
        """
        Replace the secret ``secret_id`` (the one being edited by default).

        Returns:
            True if the server accepted the update
        """
        secret_id = self._state.editing_id if secret_id is None else secret_id
        if secret_id is None:
            logger.warning("Update requested with no secret selected")
            return False
        from_draft = form is None and secret_id == self._state.editing_id
        dialog = self._modal.current_dialog() if from_draft else None
        form = self._state.form if form is None else form
        call = partial(self._api.update_secret, secret_id, form.to_payload())
        return await self._run(secret_id, call, UPDATE_FAILED_MESSAGE, dialog)

    async def remove(self, secret_id: str) -> bool:
        """
        Delete a secret after asking the confirmation callback.

        A declined confirmation issues no request and changes no state.

        Returns:
            True if the secret was deleted
        """
        if self.in_flight(secret_id):
            logger.warning(f"Request for {secret_id} already in flight, ignoring delete")
            return False
        if not self._confirm(secret_id):
            logger.info(f"Delete of {secret_id} not confirmed")
            return False
        call = partial(self._api.delete_secret, secret_id)
        return await self._run(secret_id, call, DELETE_FAILED_MESSAGE, self._modal.current_dialog())

    async def submit(self) -> bool:
        """Submit the open dialog: create or update depending on its mode."""
        if self._state.modal is ModalState.CREATE_OPEN:
            return await self.create()
        if self._state.modal is ModalState.EDIT_OPEN:
            return await self.update()
        logger.debug("Submit ignored: no dialog open")
        return False

    def dismiss_error(self) -> None:
        self._state.error.clear()

    async def _run(
        self,
        target: str,
        call: Callable[[], Awaitable[Any]],
        failure_message: str,
        dialog: Optional[int],
    ) -> bool:
        if self.in_flight(target):
            logger.warning(f"Request for '{target}' already in flight, ignoring duplicate submit")
            return False

        # Held until the dialog is closed, so a resubmit during the reload is rejected too
        self._state.in_flight.add(target)
        try:
            if not await self._dispatch(call, failure_message):
                return False
            await self._store.load()
            # Only the dialog that was open when the request started
            self._modal.close_dialog(dialog)
            return True
        finally:
            self._state.in_flight.discard(target)

    async def _dispatch(self, call: Callable[[], Awaitable[Any]], failure_message: str) -> bool:
        try:
            await call()
        except VaultError as e:
            logger.error(f"{failure_message}: {e}")
            self._state.error.set(failure_message)
            return False
        return True
