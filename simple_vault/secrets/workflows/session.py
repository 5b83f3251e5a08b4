"""Wiring of the client components around one shared AppState."""
import logging
from typing import Optional

from ..domains.api_client import VaultAPIClient
from ..domains.models import AppState
from .request_coordinator import ConfirmCallback, RequestCoordinator
from .secret_store import SecretStore
from .modal_controller import ModalController

logger = logging.getLogger(__name__)


class VaultSession:
    """
    One client session: the application state plus the components acting on it.

    Args:
        api: REST client (built from config/environment if not provided)
        confirm: Callback asked before deletes; deletes are declined without one
    """

    def __init__(self, api: Optional[VaultAPIClient] = None, confirm: Optional[ConfirmCallback] = None):
        self.state = AppState()
        self.api = api or VaultAPIClient()
        self.store = SecretStore(self.state, self.api)
        self.modal = ModalController(self.state)
        self.editor = self.modal.editor
        self.coordinator = RequestCoordinator(self.state, self.api, self.store, self.modal, confirm)
        logger.debug(f"Session created for {self.api.base_url}")

    @property
    def error(self) -> Optional[str]:
        return self.state.error.message
