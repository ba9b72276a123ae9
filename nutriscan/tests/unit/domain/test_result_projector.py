"""
Tests for the result projector.

The projector either returns a complete ScanResult or raises
MalformedResponseError; partial results are never produced.
"""

import copy
from typing import Any, Dict

import pytest

from nutriscan.domain.scan.projector import project, project_history_detail, score_tier
from nutriscan.domain.scan.result_models import ScoreTier
from nutriscan.domain.shared.errors import MalformedResponseError


class TestProject:
    """Tests for project()."""

    def test_full_payload(self, scan_response: Dict[str, Any]) -> None:
        result = project(scan_response)

        assert result.health_score.overall_score == 72
        assert result.tier is ScoreTier.GOOD
        assert result.health_score.breakdown.fat_score == 55
        assert result.health_score.warnings == ("High in saturated fat",)
        assert result.ai_advice is not None
        assert result.ai_advice.healthy_alternatives == ("Grilled chicken salad",)
        assert result.food_name == "Chicken with fries"
        assert result.is_historical is False

    def test_unknown_nutrition_keys_preserved(self, scan_response: Dict[str, Any]) -> None:
        result = project(scan_response)
        assert result.nutrition_data.model_extra == {"glycemicIndex": 55}

    def test_optional_sections_may_be_absent(self, scan_response: Dict[str, Any]) -> None:
        minimal = {
            "nutritionData": {},
            "healthScore": scan_response["healthScore"],
        }

        result = project(minimal)

        assert result.ai_advice is None
        assert result.disclaimer is None
        assert result.nutrition_data.facts() == []

    @pytest.mark.parametrize("missing", ["nutritionData", "healthScore"])
    def test_missing_section(self, scan_response: Dict[str, Any], missing: str) -> None:
        raw = dict(scan_response)
        del raw[missing]

        with pytest.raises(MalformedResponseError, match=missing):
            project(raw)

    @pytest.mark.parametrize("score", [-1, 100.5, 250])
    def test_score_out_of_range(self, scan_response: Dict[str, Any], score: float) -> None:
        raw = copy.deepcopy(scan_response)
        raw["healthScore"]["overallScore"] = score

        with pytest.raises(MalformedResponseError, match="out of range"):
            project(raw)

    def test_schema_mismatch(self, scan_response: Dict[str, Any]) -> None:
        raw = copy.deepcopy(scan_response)
        del raw["healthScore"]["breakdown"]

        with pytest.raises(MalformedResponseError):
            project(raw)

    def test_not_an_object(self) -> None:
        with pytest.raises(MalformedResponseError):
            project(["nutritionData"])


class TestProjectHistoryDetail:
    def test_flags_historical_and_maps_confidence(self, scan_response: Dict[str, Any]) -> None:
        stored = dict(scan_response)
        del stored["confidence"]
        stored["confidenceLevel"] = "medium"

        result = project_history_detail(stored)

        assert result.is_historical is True
        assert result.confidence == "medium"


class TestScoreTier:
    @pytest.mark.parametrize(
        "score,tier,color",
        [
            (100, ScoreTier.EXCELLENT, "#4CAF50"),
            (80, ScoreTier.EXCELLENT, "#4CAF50"),
            (79.9, ScoreTier.GOOD, "#8BC34A"),
            (60, ScoreTier.GOOD, "#8BC34A"),
            (40, ScoreTier.FAIR, "#FFC107"),
            (20, ScoreTier.POOR, "#FF9800"),
            (19.9, ScoreTier.VERY_POOR, "#F44336"),
            (0, ScoreTier.VERY_POOR, "#F44336"),
        ],
    )
    def test_boundaries(self, score: float, tier: ScoreTier, color: str) -> None:
        assert score_tier(score) is tier
        assert tier.color == color
