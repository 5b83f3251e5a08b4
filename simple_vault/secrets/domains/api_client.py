"""Async REST client for the vault API."""
import os
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from .config_loader import load_config, validate_base_url
from .errors import NetworkFailure, ServerFailure
from .models import Secret

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080/api/v1"
DEFAULT_TIMEOUT = 10.0


@dataclass
class VaultSettings:
    """Connection settings for the vault API."""
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    token: Optional[str] = None


def resolve_settings() -> VaultSettings:
    """
    Resolve connection settings from environment and config file.

    Priority order:
    1. VAULT_API_URL / VAULT_API_TOKEN environment variables (allow override)
    2. Config file (see config_loader)
    3. Built-in defaults

    A missing config file is fine; an invalid one is not.

    Returns:
        VaultSettings instance

    Raises:
        ConfigError: If a config file exists but is invalid, or VAULT_API_URL
            is not an absolute http(s) URL
    """
    config: Dict[str, Any] = {}
    try:
        config = load_config()
    except FileNotFoundError:
        logger.debug("No config file found, using environment and defaults")

    api = config.get("api") or {}
    auth = config.get("authentication") or {}

    base_url = os.getenv("VAULT_API_URL")
    if base_url:
        validate_base_url(base_url, "VAULT_API_URL")
        logger.debug(f"Using VAULT_API_URL from environment: {base_url}")
    else:
        base_url = api.get("base_url") or DEFAULT_BASE_URL

    return VaultSettings(
        base_url=base_url.rstrip("/"),
        timeout=float(api.get("timeout", DEFAULT_TIMEOUT)),
        token=os.getenv("VAULT_API_TOKEN") or auth.get("token"),
    )


def _error_detail(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("error") or body.get("message")
    return None


class VaultAPIClient:
    """
    Thin async wrapper around the vault REST endpoints.

    Every call opens its own ``httpx.AsyncClient``; there is no connection
    state to manage between calls. Transport errors raise NetworkFailure and
    non-2xx responses raise ServerFailure.
    """

    def __init__(self, settings: Optional[VaultSettings] = None):
        self._settings = settings or resolve_settings()

    @property
    def base_url(self) -> str:
        return self._settings.base_url

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._settings.token:
            headers["Authorization"] = f"Bearer {self._settings.token}"
        return headers

    async def _request(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> httpx.Response:
        logger.debug(f"{method} {url}")
        async with httpx.AsyncClient(
            base_url=self._settings.base_url,
            timeout=self._settings.timeout,
            headers=self._headers(),
        ) as client:
            try:
                response = await client.request(method, url, json=payload)
            except httpx.RequestError as e:
                logger.warning(f"{method} {url} failed: {e}")
                raise NetworkFailure(f"{method} {url} failed: {e}") from e

        if not response.is_success:
            detail = _error_detail(response)
            logger.warning(f"{method} {url} returned HTTP {response.status_code}: {detail or 'no detail'}")
            raise ServerFailure(response.status_code, detail)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ServerFailure(response.status_code, f"invalid JSON body: {e}") from e

    @staticmethod
    def _optional_json(response: httpx.Response) -> Optional[Any]:
        # Mutation responses are informational only; an empty body is fine
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.debug(f"Ignoring non-JSON body on HTTP {response.status_code}")
            return None

    @staticmethod
    def _secret_path(secret_id: str) -> str:
        return f"/secrets/{quote(str(secret_id), safe='')}"

    @staticmethod
    def _to_secret(payload: Any, status_code: int) -> Secret:
        try:
            return Secret.from_api(payload)
        except (KeyError, TypeError, AttributeError) as e:
            raise ServerFailure(status_code, f"malformed secret object: {e}") from e

    async def list_secrets(self) -> List[Secret]:
        """
        Fetch every secret visible to the caller.

        Returns:
            List of secrets (empty when the server sends ``secrets: null``)
        """
        response = await self._request("GET", "/secrets")
        body = self._json(response)
        if not isinstance(body, dict):
            raise ServerFailure(response.status_code, "expected a JSON object")
        items = body.get("secrets") or []
        return [self._to_secret(item, response.status_code) for item in items]

    async def get_secret(self, secret_id: str) -> Secret:
        response = await self._request("GET", self._secret_path(secret_id))
        return self._to_secret(self._json(response), response.status_code)

    async def create_secret(self, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """POST a new secret. Returns the raw created object, if any."""
        response = await self._request("POST", "/secrets", payload)
        return self._optional_json(response)

    async def update_secret(self, secret_id: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """PUT a full replacement of name, description and data."""
        response = await self._request("PUT", self._secret_path(secret_id), payload)
        return self._optional_json(response)

    async def delete_secret(self, secret_id: str) -> None:
        await self._request("DELETE", self._secret_path(secret_id))

    async def access_secret(self, access_key: str, secret_key: str, name: str) -> Dict[str, Any]:
        """
        Fetch a secret by name using an access key pair instead of a session token.

        Args:
            access_key: Access key issued by the auth service
            secret_key: Matching secret key
            name: Secret name

        Returns:
            Dict with name, description and data
        """
        payload = {"accessKey": access_key, "secretKey": secret_key, "name": name}
        response = await self._request("POST", "/secrets/access", payload)
        return self._json(response)

    async def health(self) -> Dict[str, Any]:
        """Query the server health endpoint, which lives at the server root."""
        url = str(httpx.URL(self._settings.base_url).copy_with(path="/health"))
        response = await self._request("GET", url)
        return self._json(response)
