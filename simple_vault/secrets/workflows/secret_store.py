"""Authoritative client-side cache of the vault's secrets."""
import logging
from typing import List, Optional

from ..domains.api_client import VaultAPIClient
from ..domains.errors import VaultError
from ..domains.models import AppState, Secret

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to fetch secrets"


class SecretStore:
    """
    Holds the server-derived list of secrets.

    The list is only ever replaced wholesale by ``load()``. Nothing patches it
    locally, so after any mutation the visible list is exactly what the server
    last returned.
    """

    def __init__(self, state: AppState, api: VaultAPIClient):
        self._state = state
        self._api = api

    @property
    def secrets(self) -> List[Secret]:
        return list(self._state.secrets)

    @property
    def loading(self) -> bool:
        return self._state.loading

    async def load(self) -> bool:
        """
        Replace the cached list with the server's current list.

        On failure the previous list is kept and the error slot is set.

        Returns:
            True if the list was refreshed
        """
        self._state.loading = True
        try:
            secrets = await self._api.list_secrets()
        except VaultError as e:
            logger.warning(f"Secret list refresh failed: {e}")
            self._state.error.set(LOAD_FAILED_MESSAGE)
            return False
        finally:
            self._state.loading = False

        self._state.secrets = secrets
        self._state.error.clear()
        logger.debug(f"Loaded {len(secrets)} secrets")
        return True

    def get(self, secret_id: str) -> Optional[Secret]:
        for secret in self._state.secrets:
            if secret.id == secret_id:
                return secret
        return None

    def find_by_name(self, name: str) -> List[Secret]:
        """Secrets with the given name; names are not unique server-side."""
        return [secret for secret in self._state.secrets if secret.name == name]
