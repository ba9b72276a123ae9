"""History Service: past scans listed and reopened as results."""

from typing import List

import pydantic
import structlog

from nutriscan.application.session.session_store import SessionStore
from nutriscan.domain.history.models import HistoryItem
from nutriscan.domain.history.ports import IHistoryGateway
from nutriscan.domain.scan.projector import project_history_detail
from nutriscan.domain.scan.result_models import ScanResult
from nutriscan.domain.shared.errors import BackendError, MalformedResponseError

logger = structlog.get_logger(__name__)


class HistoryService:
    """
    Read-only access to the user's scan history.

    Example:
        >>> service = HistoryService(session_store, api_client)
        >>> for item in await service.list_scans():
        ...     print(item.title, item.overall_score)
    """

    def __init__(self, session_store: SessionStore, gateway: IHistoryGateway):
        self.session_store = session_store
        self.gateway = gateway

    async def list_scans(self) -> List[HistoryItem]:
        """
        List past scans, newest first as returned by the backend.

        Raises:
            BackendError: `success` is false
            MalformedResponseError: Rows do not fit HistoryItem
        """
        body = await self.session_store.call_authenticated(self.gateway.list_history)
        if body.get("success") is False:
            raise BackendError(str(body.get("error") or "Failed to load history"))

        scans = body.get("scans") or []
        if not isinstance(scans, list):
            raise MalformedResponseError("History `scans` is not a list")

        try:
            items = [HistoryItem.model_validate(row) for row in scans]
        except pydantic.ValidationError as e:
            raise MalformedResponseError(f"Invalid history row: {e}") from e

        logger.debug("History loaded", count=len(items))
        return items

    async def get_scan(self, scan_id: str) -> ScanResult:
        """
        Reopen a stored scan as a result flagged is_historical.

        Raises:
            BackendError: `success` is false or the scan is missing
            MalformedResponseError: Stored scan does not fit ScanResult
        """
        body = await self.session_store.call_authenticated(
            lambda token: self.gateway.get_history_item(token, scan_id)
        )
        if body.get("success") is False or body.get("scan") is None:
            raise BackendError(str(body.get("error") or f"Scan {scan_id} not found"))
        return project_history_detail(body["scan"])
