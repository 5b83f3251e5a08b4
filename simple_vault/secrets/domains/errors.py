"""Exceptions raised at the vault REST boundary."""
from typing import Optional


class VaultError(Exception):
    """Base class for failed vault requests."""
    pass


class NetworkFailure(VaultError):
    """The request could not be dispatched or did not complete."""
    pass


class ServerFailure(VaultError):
    """
    The vault answered with a non-success status or an unreadable body.

    Args:
        status_code: HTTP status returned by the server
        detail: Error text from the response body, kept for logs only
    """

    def __init__(self, status_code: int, detail: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        message = f"Vault responded with HTTP {status_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
