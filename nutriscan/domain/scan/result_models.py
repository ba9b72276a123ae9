"""
Scan result domain models.

Immutable view model built by the Result Projector from the raw
backend response. Wire names are camelCase and exposed as aliases.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ScoreTier(str, Enum):
    """
    Presentation tier of a 0-100 score.

    Used consistently for the score circle, the breakdown bars and
    the category badge.
    """

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    VERY_POOR = "very poor"

    @property
    def color(self) -> str:
        """Hex color hint for the tier."""
        return _TIER_COLORS[self]

    @classmethod
    def for_score(cls, score: float) -> ScoreTier:
        """Map a score onto its tier.

        >=80 excellent, [60,80) good, [40,60) fair, [20,40) poor,
        <20 very poor.
        """
        if score >= 80:
            return cls.EXCELLENT
        if score >= 60:
            return cls.GOOD
        if score >= 40:
            return cls.FAIR
        if score >= 20:
            return cls.POOR
        return cls.VERY_POOR


_TIER_COLORS = {
    ScoreTier.EXCELLENT: "#4CAF50",
    ScoreTier.GOOD: "#8BC34A",
    ScoreTier.FAIR: "#FFC107",
    ScoreTier.POOR: "#FF9800",
    ScoreTier.VERY_POOR: "#F44336",
}


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class NutritionData(_WireModel):
    """
    Nutrition facts extracted by the backend.

    All values optional. Unknown keys are preserved so newer
    backend fields are not lost.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    calories: Optional[float] = None
    total_fat: Optional[float] = Field(None, alias="totalFat")
    saturated_fat: Optional[float] = Field(None, alias="saturatedFat")
    trans_fat: Optional[float] = Field(None, alias="transFat")
    cholesterol: Optional[float] = None
    sodium: Optional[float] = None
    total_carbohydrates: Optional[float] = Field(None, alias="totalCarbohydrates")
    dietary_fiber: Optional[float] = Field(None, alias="dietaryFiber")
    sugars: Optional[float] = None
    protein: Optional[float] = None
    serving_size: Optional[str] = Field(None, alias="servingSize")

    def facts(self) -> list[tuple[str, str]]:
        """Label/value pairs of the known facts, in label order."""
        rows: list[tuple[str, str]] = []
        if self.serving_size:
            rows.append(("Serving", self.serving_size))
        for label, value, unit in (
            ("Calories", self.calories, " cal"),
            ("Total Fat", self.total_fat, "g"),
            ("Saturated Fat", self.saturated_fat, "g"),
            ("Trans Fat", self.trans_fat, "g"),
            ("Cholesterol", self.cholesterol, "mg"),
            ("Sodium", self.sodium, "mg"),
            ("Total Carbs", self.total_carbohydrates, "g"),
            ("Dietary Fiber", self.dietary_fiber, "g"),
            ("Sugars", self.sugars, "g"),
            ("Protein", self.protein, "g"),
        ):
            if value is not None:
                rows.append((label, f"{_format_number(value)}{unit}"))
        return rows


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


class ScoreBreakdown(_WireModel):
    """Backend sub-scores, each 0-100."""

    sugar_score: float = Field(..., alias="sugarScore")
    fat_score: float = Field(..., alias="fatScore")
    sodium_score: float = Field(..., alias="sodiumScore")
    calorie_score: float = Field(..., alias="calorieScore")

    def bars(self) -> list[tuple[str, float, ScoreTier]]:
        """(label, score, tier) for each breakdown bar."""
        return [
            ("Sugar", self.sugar_score, ScoreTier.for_score(self.sugar_score)),
            ("Fat", self.fat_score, ScoreTier.for_score(self.fat_score)),
            ("Sodium", self.sodium_score, ScoreTier.for_score(self.sodium_score)),
            ("Calories", self.calorie_score, ScoreTier.for_score(self.calorie_score)),
        ]


class HealthScore(_WireModel):
    """Overall score with breakdown and advice lists."""

    overall_score: float = Field(..., ge=0, le=100, alias="overallScore")
    breakdown: ScoreBreakdown
    warnings: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()
    category: Optional[str] = None

    @property
    def tier(self) -> ScoreTier:
        return ScoreTier.for_score(self.overall_score)


class AIAdvice(_WireModel):
    """Optional AI advisor section."""

    explanation: Optional[str] = None
    healthy_alternatives: tuple[str, ...] = Field((), alias="healthyAlternatives")
    detailed_advice: Optional[str] = Field(None, alias="detailedAdvice")


class ScanResult(_WireModel):
    """
    Projected scan result.

    Immutable once created; discarded when the user starts a new scan.

    Example:
        >>> result = project(raw)
        >>> result.health_score.overall_score
        72.0
        >>> result.tier.color
        '#8BC34A'
    """

    nutrition_data: NutritionData = Field(..., alias="nutritionData")
    health_score: HealthScore = Field(..., alias="healthScore")
    ai_advice: Optional[AIAdvice] = Field(None, alias="aiAdvice")
    scan_type: Optional[str] = Field(None, alias="scanType")
    food_name: Optional[str] = Field(None, alias="foodName")
    confidence: Optional[str] = None
    disclaimer: Optional[str] = None
    food_context: Optional[Any] = Field(None, alias="foodContext")
    is_historical: bool = False

    @property
    def tier(self) -> ScoreTier:
        """Tier of the overall score."""
        return self.health_score.tier

    @property
    def is_food_photo(self) -> bool:
        return self.scan_type == "food-photo"
