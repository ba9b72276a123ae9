"""
Result projector.

Maps a raw backend scan response onto a ScanResult. Either the
whole payload validates or MalformedResponseError is raised; no
partial result is ever produced.
"""

from __future__ import annotations

from typing import Any, Mapping

import pydantic
import structlog

from nutriscan.domain.scan.result_models import ScanResult, ScoreTier
from nutriscan.domain.shared.errors import MalformedResponseError

logger = structlog.get_logger(__name__)

_REQUIRED = ("nutritionData", "healthScore")


def project(raw: Any) -> ScanResult:
    """Validate and project a raw scan response.

    Args:
        raw: Decoded JSON body of /scan/* or the `scan` object of
            /history/{id}

    Returns:
        Immutable ScanResult

    Raises:
        MalformedResponseError: nutritionData/healthScore absent,
            overallScore outside [0, 100] or schema mismatch
    """
    if not isinstance(raw, Mapping):
        raise MalformedResponseError(f"Expected a JSON object, got {type(raw).__name__}")

    missing = [key for key in _REQUIRED if raw.get(key) is None]
    if missing:
        raise MalformedResponseError(f"Response missing {', '.join(missing)}")

    score = raw["healthScore"].get("overallScore") if isinstance(raw["healthScore"], Mapping) else None
    if isinstance(score, (int, float)) and not isinstance(score, bool):
        if not 0 <= score <= 100:
            raise MalformedResponseError(f"overallScore out of range: {score}")

    try:
        result = ScanResult.model_validate(dict(raw))
    except pydantic.ValidationError as e:
        logger.warning("Scan response failed validation", errors=e.error_count())
        raise MalformedResponseError(f"Invalid scan response: {e}") from e

    return result


def project_history_detail(raw: Any) -> ScanResult:
    """Project a stored scan from /history/{id}.

    History rows store the confidence as `confidenceLevel`.
    """
    if not isinstance(raw, Mapping):
        raise MalformedResponseError(f"Expected a JSON object, got {type(raw).__name__}")
    data = dict(raw)
    if data.get("confidence") is None and data.get("confidenceLevel") is not None:
        data["confidence"] = data["confidenceLevel"]
    result = project(data)
    return result.model_copy(update={"is_historical": True})


def score_tier(score: float) -> ScoreTier:
    """Color tier of a 0-100 score."""
    return ScoreTier.for_score(score)
