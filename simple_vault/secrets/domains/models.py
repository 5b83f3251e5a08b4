"""Domain models for the vault client state machine."""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

# Placeholder shown instead of a secret value in draft listings
MASK = "••••••••"


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp as emitted by the vault API."""
    if not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.debug(f"Unparseable timestamp from vault: {value!r}")
        return None


@dataclass
class Secret:
    """A server-owned record holding a named set of key/value pairs."""
    id: str
    name: str
    description: str = ""
    data: Dict[str, str] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user_id: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Secret":
        """
        Build a Secret from a vault API object.

        Args:
            payload: JSON object as returned by the vault (camelCase keys)

        Returns:
            Secret instance

        Raises:
            KeyError: If the payload has no id or name
        """
        return cls(
            id=str(payload["id"]),
            name=payload["name"],
            description=payload.get("description") or "",
            data={str(k): str(v) for k, v in (payload.get("data") or {}).items()},
            created_at=_parse_timestamp(payload.get("createdAt")),
            updated_at=_parse_timestamp(payload.get("updatedAt")),
            user_id=payload.get("userId"),
        )


@dataclass
class FormState:
    """Client-local staging area for the secret being composed."""
    name: str = ""
    description: str = ""
    data: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_secret(cls, secret: Secret) -> "FormState":
        # Fresh mapping: the draft never aliases the cached secret
        return cls(
            name=secret.name,
            description=secret.description,
            data=dict(secret.data),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Request body for create and update calls."""
        return {
            "name": self.name,
            "description": self.description,
            "data": dict(self.data),
        }


@dataclass
class PendingEntry:
    """One key/value pair waiting to be added to the draft."""
    key: str = ""
    value: str = ""

    def clear(self) -> None:
        self.key = ""
        self.value = ""


@dataclass
class ErrorState:
    """Single user-visible error slot."""
    message: Optional[str] = None

    @property
    def active(self) -> bool:
        return self.message is not None

    def set(self, message: str) -> None:
        self.message = message

    def clear(self) -> None:
        self.message = None


class ModalState(Enum):
    """Which dialog is open."""
    CLOSED = "closed"
    CREATE_OPEN = "create"
    EDIT_OPEN = "edit"


@dataclass
class AppState:
    """
    Everything the client holds between user events.

    Each component receives this structure and mutates only its own slice:
    SecretStore owns ``secrets`` and ``loading``, ModalController owns
    ``modal``, ``form``, ``pending``, ``editing_id`` and ``dialog_id`` (bumped
    on every open), KeyValueEditor edits ``form.data`` and ``pending``,
    RequestCoordinator owns ``in_flight``.
    ``error`` is written by the store and the coordinator.
    """
    secrets: List[Secret] = field(default_factory=list)
    loading: bool = False
    error: ErrorState = field(default_factory=ErrorState)
    modal: ModalState = ModalState.CLOSED
    form: FormState = field(default_factory=FormState)
    pending: PendingEntry = field(default_factory=PendingEntry)
    editing_id: Optional[str] = None
    dialog_id: int = 0
    in_flight: Set[str] = field(default_factory=set)


def masked_items(data: Dict[str, str]) -> List[Tuple[str, str]]:
    """Return (key, MASK) rows for display."""
    return [(key, MASK) for key in data]
