"""Biometric threshold evaluator.

Pure, synchronous functions: no I/O, no hidden state, no locale
dependent formatting. Identical inputs always give identical outputs.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from nutriscan.domain.biometrics import thresholds
from nutriscan.domain.biometrics.models import (
    BMICategory,
    BiometricProfile,
    DerivedMetrics,
    RiskAssessment,
    RiskTier,
    parse_measurement,
)
from nutriscan.domain.shared.errors import ValidationError

_BP_SEVERITY = {
    RiskTier.NORMAL: 0,
    RiskTier.ELEVATED: 1,
    RiskTier.STAGE_1: 2,
    RiskTier.STAGE_2: 3,
}


def _usable(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def _round_half_up(value: float, digits: int = 1) -> float:
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def compute_bmi(weight_kg: Optional[float], height_cm: Optional[float]) -> Optional[float]:
    """Calculate Body Mass Index.

    Returns:
        weight (kg) / (height (m))^2 rounded half-up to one decimal,
        or None if either input is missing or not positive.

    Example:
        >>> compute_bmi(80.0, 180.0)
        24.7
        >>> compute_bmi(None, 180.0) is None
        True
    """
    if not _usable(weight_kg) or not _usable(height_cm):
        return None
    assert weight_kg is not None and height_cm is not None
    height_m = height_cm / 100.0
    return _round_half_up(weight_kg / (height_m**2))


def categorize_bmi(bmi: Optional[float]) -> BMICategory:
    """Get BMI category classification.

    Lower bound of each bracket is inclusive: 18.5 is Normal,
    25.0 is Overweight, 30.0 is Obese.
    """
    if bmi is None or not math.isfinite(bmi):
        return BMICategory.UNKNOWN
    if bmi < 18.5:
        return BMICategory.UNDERWEIGHT
    elif bmi < 25.0:
        return BMICategory.NORMAL
    elif bmi < 30.0:
        return BMICategory.OVERWEIGHT
    else:
        return BMICategory.OBESE


def _classify(metric: str, value: float) -> RiskTier:
    checked = parse_measurement(metric, value)
    if checked is None:
        raise ValidationError(f"{metric} value is required")
    return thresholds.lookup(thresholds.TABLES[metric], checked).tier


def classify_glucose(value: float) -> RiskTier:
    """Fasting glucose: <100 Normal, [100,126) Pre-diabetic, >=126 Diabetic.

    Every classifier raises ValidationError for NaN, infinite or
    negative input.
    """
    return _classify("glucose", value)


def classify_hba1c(value: float) -> RiskTier:
    return _classify("hba1c", value)


def classify_ldl(value: float) -> RiskTier:
    return _classify("ldl", value)


def classify_hdl(value: float) -> RiskTier:
    return _classify("hdl", value)


def classify_triglycerides(value: float) -> RiskTier:
    return _classify("triglycerides", value)


def classify_blood_pressure(
    systolic: Optional[float], diastolic: Optional[float]
) -> Optional[RiskTier]:
    """Classify a blood pressure reading.

    The reading takes the more severe of the systolic and diastolic
    tiers; a missing half is ignored. Both missing gives None.
    """
    tiers = []
    if systolic is not None:
        tiers.append(_classify("systolic", systolic))
    if diastolic is not None:
        tiers.append(_classify("diastolic", diastolic))
    if not tiers:
        return None
    return max(tiers, key=lambda t: _BP_SEVERITY[t])


def classify_liver_enzyme(enzyme: str, value: float) -> RiskTier:
    """ALT, AST or GGT."""
    if enzyme not in ("alt", "ast", "ggt"):
        raise ValueError(f"Unknown liver enzyme: {enzyme}")
    return _classify(enzyme, value)


def evaluate_risks(profile: BiometricProfile) -> dict[str, RiskAssessment]:
    """Classify every metric present in the profile.

    Absent metrics are omitted rather than reported as normal.
    Blood pressure is reported once under "blood_pressure".
    """
    risks: dict[str, RiskAssessment] = {}

    for metric, table in thresholds.TABLES.items():
        if metric in ("systolic", "diastolic"):
            continue
        value = getattr(profile, metric)
        if value is None:
            continue
        bracket = thresholds.lookup(table, value)
        risks[metric] = RiskAssessment(
            metric=metric,
            value=value,
            tier=bracket.tier,
            at_risk=bracket.at_risk,
        )

    bp_tier = classify_blood_pressure(profile.systolic, profile.diastolic)
    if bp_tier is not None:
        reading = profile.systolic if profile.systolic is not None else profile.diastolic
        assert reading is not None
        risks["blood_pressure"] = RiskAssessment(
            metric="blood_pressure",
            value=reading,
            tier=bp_tier,
            at_risk=bp_tier is not RiskTier.NORMAL,
        )

    return risks


def is_healthy(profile: BiometricProfile, derived_bmi_category: BMICategory) -> bool:
    """True iff no condition flag is set and BMI is not known to be abnormal.

    Missing data is never penalized: an Unknown BMI passes through,
    only known risk factors count.
    """
    if profile.has_condition():
        return False
    return derived_bmi_category in (BMICategory.NORMAL, BMICategory.UNKNOWN)


def derive_metrics(profile: BiometricProfile) -> DerivedMetrics:
    """Compute DerivedMetrics for a profile snapshot."""
    bmi = compute_bmi(profile.weight_kg, profile.height_cm)
    category = categorize_bmi(bmi)
    return DerivedMetrics(
        bmi=bmi,
        bmi_category=category,
        is_healthy=is_healthy(profile, category),
    )
