"""Port for the profile endpoints."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class IProfileGateway(Protocol):
    """Port for /user/profile (bearer authenticated)."""

    async def get_profile(self, token: str) -> dict[str, Any]:
        """GET /user/profile, raw user record."""
        ...

    async def update_profile(self, token: str, payload: dict[str, Any]) -> dict[str, Any]:
        """PUT /user/profile with a sparse payload.

        Returns:
            Raw `{message, user}` body
        """
        ...
