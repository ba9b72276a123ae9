"""
Profile Service.

Reads and updates the biometric profile, and runs the threshold
evaluator over it.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple, Union

import pydantic
import structlog

from nutriscan.application.session.session_store import SessionStore
from nutriscan.domain.biometrics.evaluator import derive_metrics, evaluate_risks
from nutriscan.domain.biometrics.models import (
    BiometricProfile,
    BMICategory,
    DerivedMetrics,
    RiskAssessment,
)
from nutriscan.domain.biometrics.ports import IProfileGateway
from nutriscan.domain.session.models import User
from nutriscan.domain.shared.errors import MalformedResponseError, ValidationError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class UserProfile:
    """User record with its biometric view.

    Attributes:
        user: Raw cached user record
        biometrics: Parsed biometric fields
        derived: BMI, category and healthy flag
        risks: Risk tier per metric present in biometrics
    """

    user: User
    biometrics: BiometricProfile
    derived: DerivedMetrics
    risks: Dict[str, RiskAssessment]


def _backend_derived(raw: Mapping[str, Any], local: DerivedMetrics) -> DerivedMetrics:
    """Prefer bmi/bmiCategory/isHealthy when the backend precomputed them."""
    bmi = raw.get("bmi")
    if isinstance(bmi, bool) or not isinstance(bmi, (int, float)):
        bmi = local.bmi

    category = local.bmi_category
    raw_category = raw.get("bmiCategory")
    if isinstance(raw_category, str):
        try:
            category = BMICategory(raw_category)
        except ValueError:
            logger.debug("Unknown bmiCategory from backend", value=raw_category)

    healthy = raw.get("isHealthy")
    if not isinstance(healthy, bool):
        healthy = local.is_healthy

    return DerivedMetrics(bmi=bmi, bmi_category=category, is_healthy=healthy)


class ProfileService:
    """
    Profile read/update on top of the Session Store.

    Dependencies:
    - session_store: SessionStore - Token and user cache
    - gateway: IProfileGateway - /user/profile

    Example:
        >>> service = ProfileService(session_store, api_client)
        >>> profile = await service.update_profile({"weight_kg": "80", "height_cm": "180"})
        >>> profile.derived.bmi
        24.7
    """

    def __init__(self, session_store: SessionStore, gateway: IProfileGateway):
        self.session_store = session_store
        self.gateway = gateway

    async def get_profile(self) -> UserProfile:
        """
        Fetch the profile and refresh the cached user.

        Raises:
            NotAuthenticatedError: No token
            AuthRejectedError: 401 (session torn down)
            MalformedResponseError: Record without email
        """
        raw = await self.session_store.call_authenticated(self.gateway.get_profile)
        try:
            user = User.model_validate(raw)
        except pydantic.ValidationError as e:
            raise MalformedResponseError(f"Invalid profile response: {e}") from e

        await self.session_store.cache_user(user)
        return self._build(user, raw)

    async def update_profile(
        self, changes: Union[BiometricProfile, Mapping[str, Any]]
    ) -> UserProfile:
        """
        Validate and send a sparse profile update, then re-read it.

        Args:
            changes: Profile snapshot or raw form values (strings)

        Raises:
            ValidationError: Invalid or empty input, nothing is sent
            NotAuthenticatedError: No token
            AuthRejectedError: 401 (session torn down)
            BackendError: Other non-2xx
        """
        if isinstance(changes, BiometricProfile):
            profile = changes
        else:
            profile = BiometricProfile.from_form(changes)

        payload = profile.to_payload()
        if not payload:
            raise ValidationError("No profile fields to update")

        await self.session_store.call_authenticated(
            lambda token: self.gateway.update_profile(token, payload)
        )
        logger.info("Profile updated", fields=sorted(payload))
        return await self.get_profile()

    @staticmethod
    def preview(
        profile: BiometricProfile,
    ) -> Tuple[DerivedMetrics, Dict[str, RiskAssessment]]:
        """Derived metrics and risks of a local edit, no I/O."""
        return derive_metrics(profile), evaluate_risks(profile)

    @staticmethod
    def _build(user: User, raw: Mapping[str, Any]) -> UserProfile:
        biometrics = BiometricProfile.from_wire(raw)
        derived = _backend_derived(raw, derive_metrics(biometrics))
        return UserProfile(
            user=user,
            biometrics=biometrics,
            derived=derived,
            risks=evaluate_risks(biometrics),
        )
