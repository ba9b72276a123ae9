"""
Ports (Interfaces) for session persistence and authentication.

Design Pattern: Ports & Adapters (Hexagonal Architecture)
"""

from typing import Any, Optional, Protocol, runtime_checkable

TOKEN_KEY = "authToken"
USER_KEY = "user"


@runtime_checkable
class IKeyValueStore(Protocol):
    """
    Port for persistent scoped key-value storage.

    Values are opaque strings. Implementations may be in-memory,
    file based or platform keychains.
    """

    async def get(self, key: str) -> Optional[str]:
        """Return stored value or None."""
        ...

    async def set(self, key: str, value: str) -> None:
        """Store value under key.

        Raises:
            StorageError: If the write fails
        """
        ...

    async def remove(self, key: str) -> None:
        """Delete key; missing keys are ignored.

        Raises:
            StorageError: If the delete fails
        """
        ...


@runtime_checkable
class IAuthGateway(Protocol):
    """
    Port for the backend authentication endpoints.

    Both operations return the raw `{token, user}` payload.
    """

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """POST /auth/login.

        Raises:
            AuthRejectedError: Non-success status
            NetworkError: Transport failure
        """
        ...

    async def register(self, email: str, password: str) -> dict[str, Any]:
        """POST /auth/register.

        Raises:
            EmailInUseError: Email already registered
            BackendError: Any other non-success status
            NetworkError: Transport failure
        """
        ...
