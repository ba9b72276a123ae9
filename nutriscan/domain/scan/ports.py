"""
Ports (Interfaces) for the scan upload.

Every method takes the bearer token explicitly; the session
layer decides where it comes from.

Design Pattern: Ports & Adapters (Hexagonal Architecture)
"""

from typing import Any, Protocol, Sequence, runtime_checkable

from nutriscan.domain.scan.models import ImageRef, ScanModeDescriptor


@runtime_checkable
class IScanGateway(Protocol):
    """Port for the multipart scan upload."""

    async def upload_scan(
        self,
        token: str,
        descriptor: ScanModeDescriptor,
        images: Sequence[ImageRef],
    ) -> dict[str, Any]:
        """
        POST images to the descriptor's endpoint.

        Returns:
            Decoded JSON body of a 2xx response

        Raises:
            AuthRejectedError: 401
            BackendError: Other non-2xx, with status and body
            NetworkError: Transport failure or timeout
            MalformedResponseError: 2xx with a non-JSON body
        """
        ...
