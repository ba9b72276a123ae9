"""
Scan Capture & Upload Orchestrator.

Owns the pending scan: selected mode, staged images and the
upload state machine

    Idle → Ready(1..3) → Uploading → Succeeded(result) | Failed(error)

Design Pattern: Service Layer + State Machine + Dependency Injection
"""

import asyncio
from typing import Callable, List, Optional, Tuple, Union

import structlog

from nutriscan.application.session.session_store import SessionStore
from nutriscan.domain.scan.models import (
    ImageRef,
    ScanMode,
    ScanModeDescriptor,
    UploadState,
    descriptor_for,
)
from nutriscan.domain.scan.ports import IScanGateway
from nutriscan.domain.scan.projector import project
from nutriscan.domain.scan.result_models import ScanResult
from nutriscan.domain.shared.errors import (
    AlreadyInProgressError,
    CapacityExceededError,
    NotAuthenticatedError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

StateListener = Callable[[UploadState], None]


class ScanOrchestrator:
    """
    Drives one pending scan from capture to result.

    Responsibilities:
    - Mode selection (label / food / enhanced)
    - Image staging with per-mode capacity and replacement rules
    - Single in-flight upload, rejected synchronously when busy
    - Result projection and error retention for retry

    Dependencies (injected via Ports/Interfaces):
    - session_store: SessionStore - Bearer token and forced logout
    - gateway: IScanGateway - Multipart upload

    Example:
        >>> orchestrator = ScanOrchestrator(session_store, api_client)
        >>> orchestrator.select_mode(ScanMode.ENHANCED)
        >>> orchestrator.add_image(ImageRef.from_path("plate.jpg"))
        >>> result = await orchestrator.submit()
        >>> print(result.health_score.overall_score, result.tier.color)
    """

    def __init__(
        self,
        session_store: SessionStore,
        gateway: IScanGateway,
        mode: ScanMode = ScanMode.ENHANCED,
    ):
        self.session_store = session_store
        self.gateway = gateway
        self._mode = ScanMode(mode)
        self._images: List[ImageRef] = []
        self._state = UploadState.IDLE
        self._result: Optional[ScanResult] = None
        self._error: Optional[BaseException] = None
        self._listeners: List[StateListener] = []

    # ═══════════════════════════════════════════════════════════
    # STATE
    # ═══════════════════════════════════════════════════════════

    @property
    def mode(self) -> ScanMode:
        return self._mode

    @property
    def descriptor(self) -> ScanModeDescriptor:
        return descriptor_for(self._mode)

    @property
    def images(self) -> Tuple[ImageRef, ...]:
        return tuple(self._images)

    @property
    def state(self) -> UploadState:
        return self._state

    @property
    def result(self) -> Optional[ScanResult]:
        """Result of the last successful upload (Succeeded only)."""
        return self._result

    @property
    def error(self) -> Optional[BaseException]:
        """Failure of the last upload (Failed only).

        A cancelled upload leaves the CancelledError here.

        BackendError instances carry status_code and body.
        """
        return self._error

    @property
    def can_submit(self) -> bool:
        return self._state in (UploadState.READY, UploadState.FAILED) and bool(self._images)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a state transition listener.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ═══════════════════════════════════════════════════════════
    # COMPOSITION
    # ═══════════════════════════════════════════════════════════

    def select_mode(self, mode: Union[ScanMode, str]) -> None:
        """
        Switch capture mode, dropping any staged images.

        Raises:
            AlreadyInProgressError: While Uploading
            ValidationError: Unknown mode
        """
        self._ensure_idle_upload("change mode")
        try:
            new_mode = ScanMode(mode)
        except ValueError:
            allowed = ", ".join(m.value for m in ScanMode)
            raise ValidationError(f"Scan mode must be one of {allowed}, got {mode!r}") from None

        self._mode = new_mode
        self._reset()
        logger.debug("Scan mode selected", mode=new_mode.value)

    def add_image(self, image: ImageRef) -> None:
        """
        Stage an image.

        Enhanced mode appends up to its capacity; single-image modes
        replace the staged image. After Succeeded a fresh composition
        starts; after Failed the retained images are kept.

        Raises:
            AlreadyInProgressError: While Uploading
            CapacityExceededError: Enhanced mode already holds 3 images
        """
        self._ensure_idle_upload("add images")
        descriptor = self.descriptor

        if self._state is UploadState.SUCCEEDED:
            self._images = []
            self._result = None

        if descriptor.replaces:
            self._images = [image]
        else:
            if len(self._images) >= descriptor.max_images:
                raise CapacityExceededError(
                    f"You can add up to {descriptor.max_images} images in "
                    f"{self._mode.value} mode"
                )
            self._images.append(image)

        self._error = None
        self._transition(UploadState.READY)

    def remove_image(self, index: int) -> None:
        """
        Remove a staged image by position.

        Raises:
            AlreadyInProgressError: While Uploading
            ValidationError: Index out of range
        """
        self._ensure_idle_upload("remove images")
        if not 0 <= index < len(self._images):
            raise ValidationError(f"No image at position {index}")

        del self._images[index]
        self._error = None
        self._transition(UploadState.READY if self._images else UploadState.IDLE)

    def discard(self) -> None:
        """
        Drop the pending scan and return to Idle.

        Raises:
            AlreadyInProgressError: While Uploading
        """
        self._ensure_idle_upload("discard the scan")
        self._reset()

    # ═══════════════════════════════════════════════════════════
    # UPLOAD
    # ═══════════════════════════════════════════════════════════

    async def submit(self) -> ScanResult:
        """
        Upload the staged images and project the response.

        Workflow:
        1. Synchronous checks (busy, images, token), no state change
        2. → Uploading, multipart POST to the mode's endpoint
        3. Project response → Succeeded, staged images cleared
        4. Any failure or cancellation → Failed with images kept, re-raised

        Returns:
            Projected ScanResult

        Raises:
            AlreadyInProgressError: Upload already in flight
            ValidationError: No staged images
            NotAuthenticatedError: No token (no network call)
            AuthRejectedError: 401 (session torn down)
            BackendError: Other non-2xx
            NetworkError: Transport failure or timeout
            MalformedResponseError: Response does not fit ScanResult
        """
        if self._state is UploadState.UPLOADING:
            raise AlreadyInProgressError("Upload already in progress")
        if not self._images:
            raise ValidationError("Add at least one image before submitting")
        if self.session_store.current_token() is None:
            raise NotAuthenticatedError("Please login first")

        descriptor = self.descriptor
        images = tuple(self._images)
        self._error = None
        self._result = None
        self._transition(UploadState.UPLOADING)

        logger.info(
            "Submitting scan",
            mode=self._mode.value,
            endpoint=descriptor.endpoint,
            images=len(images),
        )

        try:
            raw = await self.session_store.call_authenticated(
                lambda token: self.gateway.upload_scan(token, descriptor, images)
            )
            result = project(raw)
        except (Exception, asyncio.CancelledError) as e:
            self._error = e
            self._transition(UploadState.FAILED)
            logger.warning(
                "Scan upload failed",
                mode=self._mode.value,
                error_type=type(e).__name__,
                status_code=getattr(e, "status_code", None),
            )
            raise

        self._result = result
        self._images = []
        self._transition(UploadState.SUCCEEDED)
        logger.info(
            "Scan uploaded",
            mode=self._mode.value,
            overall_score=result.health_score.overall_score,
        )
        return result

    # ═══════════════════════════════════════════════════════════
    # INTERNALS
    # ═══════════════════════════════════════════════════════════

    def _ensure_idle_upload(self, action: str) -> None:
        if self._state is UploadState.UPLOADING:
            raise AlreadyInProgressError(f"Cannot {action} while uploading")

    def _reset(self) -> None:
        self._images = []
        self._result = None
        self._error = None
        self._transition(UploadState.IDLE)

    def _transition(self, state: UploadState) -> None:
        if state is self._state:
            return
        previous, self._state = self._state, state
        logger.debug("Scan state changed", previous=previous.value, state=state.value)
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error("State listener failed", error=str(e), exc_info=True)
