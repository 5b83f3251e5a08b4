"""Create/edit dialog state machine."""
import logging
from typing import Optional

from ..domains.models import AppState, FormState, ModalState, PendingEntry, Secret
from .key_value_editor import KeyValueEditor

logger = logging.getLogger(__name__)


class ModalController:
    """
    Governs which dialog is open and owns the draft form.

    States are CLOSED, CREATE_OPEN and EDIT_OPEN. A dialog can only be opened
    from CLOSED; attempts from any other state are ignored. Every transition
    back to CLOSED discards the draft and the pending key/value entry.
    """

    def __init__(self, state: AppState):
        self._state = state
        self.editor = KeyValueEditor(state)

    @property
    def state(self) -> ModalState:
        return self._state.modal

    @property
    def is_open(self) -> bool:
        return self._state.modal is not ModalState.CLOSED

    @property
    def form(self) -> FormState:
        return self._state.form

    @property
    def editing_id(self) -> Optional[str]:
        return self._state.editing_id

    def current_dialog(self) -> Optional[int]:
        """Identifier of the open dialog, or None when closed."""
        return self._state.dialog_id if self.is_open else None

    def open_create(self) -> bool:
        """
        Open the create dialog with an empty draft.

        Returns:
            False if another dialog is already open
        """
        if self.is_open:
            logger.debug(f"open_create ignored: dialog already {self._state.modal.value}")
            return False
        self._state.form = FormState()
        self._state.pending = PendingEntry()
        self._state.editing_id = None
        self._state.dialog_id += 1
        self._state.modal = ModalState.CREATE_OPEN
        return True

    def open_edit(self, secret: Secret) -> bool:
        """
        Open the edit dialog seeded from ``secret``.

        The draft gets its own copy of ``secret.data``; edits never reach the
        cached secret before a successful submit.

        Returns:
            False if another dialog is already open
        """
        if self.is_open:
            logger.debug(f"open_edit ignored: dialog already {self._state.modal.value}")
            return False
        self._state.form = FormState.from_secret(secret)
        self._state.pending = PendingEntry()
        self._state.editing_id = secret.id
        self._state.dialog_id += 1
        self._state.modal = ModalState.EDIT_OPEN
        return True

    def set_name(self, name: str) -> None:
        if self.is_open:
            self._state.form.name = name

    def set_description(self, description: str) -> None:
        if self.is_open:
            self._state.form.description = description

    def cancel(self) -> None:
        """Close without side effects, discarding the draft."""
        if not self.is_open:
            return
        logger.debug(f"Cancelled {self._state.modal.value} dialog")
        self._reset()

    def close_dialog(self, dialog: Optional[int]) -> bool:
        """
        Close only if ``dialog`` is still the open one.

        A request that finishes after its dialog was cancelled leaves any
        dialog opened since untouched.

        Returns:
            True if the dialog was closed
        """
        if dialog is None or dialog != self.current_dialog():
            logger.debug(f"Dialog {dialog} no longer open, leaving current dialog alone")
            return False
        self._reset()
        return True

    def _reset(self) -> None:
        self._state.modal = ModalState.CLOSED
        self._state.form = FormState()
        self._state.pending = PendingEntry()
        self._state.editing_id = None
