"""Key/value editing buffer for the open dialog."""
import logging
from typing import List, Optional, Tuple

from ..domains.models import AppState, ModalState, masked_items

logger = logging.getLogger(__name__)


class KeyValueEditor:
    """Edits the draft's data mapping and the pending entry of the open dialog."""

    def __init__(self, state: AppState):
        self._state = state

    def _active(self) -> bool:
        return self._state.modal is not ModalState.CLOSED

    def set_pending(self, key: Optional[str] = None, value: Optional[str] = None) -> None:
        """Stage the pending entry; ``None`` leaves a field unchanged."""
        if not self._active():
            return
        if key is not None:
            self._state.pending.key = key
        if value is not None:
            self._state.pending.value = value

    def add(self, key: Optional[str] = None, value: Optional[str] = None) -> bool:
        """
        Insert or overwrite ``data[key] = value``.

        Falls back to the pending entry for any argument not given. Nothing
        happens unless both key and value are non-empty. No other validation is
        done here; the vault validates payload content.

        Returns:
            True if the draft changed
        """
        if not self._active():
            return False
        pending = self._state.pending
        key = pending.key if key is None else key
        value = pending.value if value is None else value
        if not key or not value:
            return False
        self._state.form.data[key] = value
        pending.clear()
        logger.debug(f"Draft key '{key}' set")
        return True

    def remove(self, key: str) -> bool:
        if not self._active() or key not in self._state.form.data:
            return False
        del self._state.form.data[key]
        return True

    def entries(self) -> List[Tuple[str, str]]:
        """Draft rows with values masked for display."""
        return masked_items(self._state.form.data)
