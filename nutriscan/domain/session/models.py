"""
Session domain models.

Session, cached user record and login credentials.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from nutriscan.domain.shared.errors import InvalidCredentialsError

MIN_PASSWORD_LENGTH = 6


class Credentials(BaseModel):
    """
    Email/password pair for login and registration.

    Example:
        >>> creds = Credentials(email="ada@example.com", password="secret1")
        >>> creds.validate_local()
    """

    model_config = ConfigDict(frozen=True)

    email: str
    password: str

    def validate_local(self) -> None:
        """
        Check the credentials before any network call.

        Raises:
            InvalidCredentialsError: Empty fields, email without '@'
                or password shorter than 6 characters
        """
        if not self.email.strip() or not self.password.strip():
            raise InvalidCredentialsError("Please fill in all fields")
        if "@" not in self.email:
            raise InvalidCredentialsError("Please enter a valid email")
        if len(self.password) < MIN_PASSWORD_LENGTH:
            raise InvalidCredentialsError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

    def to_payload(self) -> dict[str, str]:
        """Request body for /auth/login and /auth/register."""
        return {"email": self.email.strip(), "password": self.password}


class User(BaseModel):
    """
    Cached user record as returned by the backend.

    Biometric fields are kept verbatim (wire names) so the record
    round-trips through the key-value store untouched.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    id: Optional[str] = Field(None, description="Backend user identifier")
    email: str = Field(..., description="Account email")

    @field_validator("id", mode="before")
    @classmethod
    def id_as_text(cls, v: Any) -> Optional[str]:
        """Backends may send numeric or ObjectId-like ids."""
        return None if v is None else str(v)


class Session(BaseModel):
    """
    Authenticated session.

    At most one live session per SessionStore. Empty when both
    fields are None.
    """

    model_config = ConfigDict(frozen=True)

    token: Optional[str] = None
    user_email: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    @classmethod
    def empty(cls) -> Session:
        return cls(token=None, user_email=None)
