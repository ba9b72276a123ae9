"""Session lifecycle events."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from nutriscan.domain.shared.events import DomainEvent


class SessionEndReason(str, Enum):
    """Why a session was torn down."""

    USER_LOGOUT = "user_logout"
    AUTH_REJECTED = "auth_rejected"


@dataclass(frozen=True)
class SessionStarted(DomainEvent):
    """Login or registration succeeded."""

    user_email: Optional[str]


@dataclass(frozen=True)
class SessionEnded(DomainEvent):
    """Session cleared.

    With reason AUTH_REJECTED the presentation layer must navigate
    to the login flow.
    """

    reason: SessionEndReason
