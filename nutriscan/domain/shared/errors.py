"""
Client core exceptions.

Every failure the client core can surface is one of these; callers
catch the narrowest type they can recover from.
"""

from __future__ import annotations

from typing import Optional


# ═══════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════


class DomainError(Exception):
    """
    Base exception for all client core errors.

    The CLI catches this at the top level and exits with status 1.
    """

    pass


# ═══════════════════════════════════════════════════════════
# VALIDATION EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ValidationError(DomainError):
    """
    Local input validation failed.

    Never reaches the network. Always recoverable: the user
    corrects the input and tries again.

    Raised when:
    - Biometric value is not a finite non-negative number
    - Submit requested with no pending images
    - Image index out of range

    Example:
        >>> raise ValidationError("weight_kg must be a number, got 'abc'")
    """

    pass


class InvalidCredentialsError(ValidationError):
    """
    Credentials rejected before any network call.

    Raised when:
    - Email does not contain '@'
    - Password shorter than 6 characters

    Example:
        >>> raise InvalidCredentialsError("Please enter a valid email")
    """

    pass


class CapacityExceededError(ValidationError):
    """
    Too many images for the current scan mode.

    Example:
        >>> raise CapacityExceededError("You can only add up to 3 images")
    """

    pass


# ═══════════════════════════════════════════════════════════
# SESSION / STATE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class NotAuthenticatedError(DomainError):
    """
    No session token available.

    Raised before any network call is attempted.

    Example:
        >>> raise NotAuthenticatedError("Please login first")
    """

    pass


class ConflictError(DomainError):
    """
    Operation conflicts with the current state.

    Example:
        >>> raise ConflictError("Scan already submitted")
    """

    pass


class AlreadyInProgressError(ConflictError):
    """
    An upload is in flight.

    Raised when:
    - submit() is called while Uploading
    - Mode switch or image edits are requested while Uploading

    Example:
        >>> raise AlreadyInProgressError("Upload already in progress")
    """

    pass


# ═══════════════════════════════════════════════════════════
# EXTERNAL SERVICE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ExternalServiceError(DomainError):
    """
    Backend call failed.

    Base class for all errors coming from the scoring backend
    or the transport in front of it.
    """

    pass


class NetworkError(ExternalServiceError):
    """
    Transport failure, no response received.

    Example:
        >>> raise NetworkError("Connection refused")
    """

    pass


class TimeoutError(NetworkError):  # noqa: A001
    """
    Request exceeded the transport timeout.

    Example:
        >>> raise TimeoutError("Backend timeout after 10s")
    """

    pass


class BackendError(ExternalServiceError):
    """
    Backend answered with a non-2xx status.

    Carries the status code and the raw body text so the
    presentation layer can show what the server said.

    Example:
        >>> raise BackendError("Server error", status_code=500, body="boom")
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthRejectedError(BackendError):
    """
    Backend rejected the credentials or token (401).

    Not recoverable locally: the session is torn down and
    the user must authenticate again.
    """

    pass


class EmailInUseError(BackendError):
    """
    Registration refused because the email already has an account.

    Example:
        >>> raise EmailInUseError("Email already registered", status_code=409)
    """

    pass


class MalformedResponseError(ExternalServiceError):
    """
    Backend answered 2xx but the payload is unusable.

    Raised when:
    - Body is not JSON
    - nutritionData or healthScore missing
    - overallScore outside [0, 100]
    """

    pass


# ═══════════════════════════════════════════════════════════
# INFRASTRUCTURE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class InfrastructureError(DomainError):
    """
    Infrastructure layer error.

    Base class for local storage errors.
    """

    pass


class StorageError(InfrastructureError):
    """
    Key-value store operation failed.

    Example:
        >>> raise StorageError("Cannot write ~/.nutriscan/storage.json")
    """

    pass
