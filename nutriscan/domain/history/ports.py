"""Port for the scan history endpoints."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class IHistoryGateway(Protocol):
    """Port for /history (bearer authenticated)."""

    async def list_history(self, token: str) -> dict[str, Any]:
        """GET /history, raw `{success, scans}` body."""
        ...

    async def get_history_item(self, token: str, scan_id: str) -> dict[str, Any]:
        """GET /history/{id}, raw `{success, scan}` body."""
        ...
