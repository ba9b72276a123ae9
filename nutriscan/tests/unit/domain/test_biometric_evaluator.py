"""
Tests for the biometric threshold evaluator.

Pure functions, no fixtures needed.
"""

import math

import pytest

from nutriscan.domain.biometrics.evaluator import (
    categorize_bmi,
    classify_blood_pressure,
    classify_glucose,
    classify_hba1c,
    classify_hdl,
    classify_ldl,
    classify_liver_enzyme,
    classify_triglycerides,
    compute_bmi,
    derive_metrics,
    evaluate_risks,
    is_healthy,
)
from nutriscan.domain.biometrics.models import BiometricProfile, BMICategory, RiskTier
from nutriscan.domain.shared.errors import ValidationError


class TestComputeBMI:
    """Tests for compute_bmi."""

    def test_reference_value(self) -> None:
        """80 kg at 180 cm is 24.7."""
        assert compute_bmi(80.0, 180.0) == 24.7

    def test_rounds_half_up(self) -> None:
        """22.25 rounds to 22.3, not banker's 22.2."""
        assert compute_bmi(89.0, 200.0) == 22.3

    @pytest.mark.parametrize(
        "weight,height",
        [
            (None, 180.0),
            (80.0, None),
            (0.0, 180.0),
            (80.0, 0.0),
            (-5.0, 180.0),
            (math.nan, 180.0),
            (80.0, math.inf),
        ],
    )
    def test_unusable_inputs_give_none(self, weight, height) -> None:
        assert compute_bmi(weight, height) is None

    def test_monotonic_in_weight(self) -> None:
        """Heavier at the same height never lowers BMI."""
        values = [compute_bmi(w, 175.0) for w in range(40, 150, 5)]
        assert values == sorted(values)

    def test_antitonic_in_height(self) -> None:
        """Taller at the same weight never raises BMI."""
        values = [compute_bmi(70.0, h) for h in range(150, 210, 5)]
        assert values == sorted(values, reverse=True)

    def test_scales_with_weight(self) -> None:
        """Doubling weight doubles BMI (within rounding)."""
        single = compute_bmi(60.0, 170.0)
        double = compute_bmi(120.0, 170.0)
        assert single is not None and double is not None
        assert abs(double - 2 * single) <= 0.15


class TestCategorizeBMI:
    """Bracket boundaries are inclusive on the lower side."""

    @pytest.mark.parametrize(
        "bmi,expected",
        [
            (18.4, BMICategory.UNDERWEIGHT),
            (18.5, BMICategory.NORMAL),
            (24.9, BMICategory.NORMAL),
            (25.0, BMICategory.OVERWEIGHT),
            (29.9, BMICategory.OVERWEIGHT),
            (30.0, BMICategory.OBESE),
            (None, BMICategory.UNKNOWN),
        ],
    )
    def test_boundaries(self, bmi, expected) -> None:
        assert categorize_bmi(bmi) is expected


class TestClassifiers:
    """Literal threshold tables."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (85, RiskTier.NORMAL),
            (99.9, RiskTier.NORMAL),
            (100, RiskTier.PREDIABETIC),
            (125, RiskTier.PREDIABETIC),
            (126, RiskTier.DIABETIC),
        ],
    )
    def test_glucose(self, value, expected) -> None:
        assert classify_glucose(value) is expected

    def test_hba1c(self) -> None:
        assert classify_hba1c(5.6) is RiskTier.NORMAL
        assert classify_hba1c(5.7) is RiskTier.PREDIABETIC
        assert classify_hba1c(6.5) is RiskTier.DIABETIC

    def test_ldl(self) -> None:
        assert classify_ldl(90) is RiskTier.OPTIMAL
        assert classify_ldl(100) is RiskTier.NEAR_OPTIMAL
        assert classify_ldl(130) is RiskTier.BORDERLINE_HIGH
        assert classify_ldl(160) is RiskTier.HIGH
        assert classify_ldl(190) is RiskTier.VERY_HIGH

    def test_hdl_low_is_risk(self) -> None:
        assert classify_hdl(35) is RiskTier.LOW
        assert classify_hdl(45) is RiskTier.NORMAL
        assert classify_hdl(60) is RiskTier.PROTECTIVE

    def test_triglycerides(self) -> None:
        assert classify_triglycerides(149) is RiskTier.NORMAL
        assert classify_triglycerides(150) is RiskTier.BORDERLINE_HIGH
        assert classify_triglycerides(500) is RiskTier.VERY_HIGH

    def test_blood_pressure_takes_worse_reading(self) -> None:
        """Normal systolic with stage 2 diastolic is stage 2."""
        assert classify_blood_pressure(115, 95) is RiskTier.STAGE_2
        assert classify_blood_pressure(125, 75) is RiskTier.ELEVATED
        assert classify_blood_pressure(None, 85) is RiskTier.STAGE_1
        assert classify_blood_pressure(None, None) is None

    def test_liver_enzymes(self) -> None:
        assert classify_liver_enzyme("alt", 30) is RiskTier.NORMAL
        assert classify_liver_enzyme("ast", 41) is RiskTier.ELEVATED
        assert classify_liver_enzyme("ggt", 61) is RiskTier.ELEVATED

    def test_unknown_liver_enzyme(self) -> None:
        with pytest.raises(ValueError):
            classify_liver_enzyme("alp", 50)

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf, -5.0])
    def test_unusable_values_rejected(self, value: float) -> None:
        """NaN must never come out as a Normal tier."""
        with pytest.raises(ValidationError):
            classify_glucose(value)
        with pytest.raises(ValidationError):
            classify_ldl(value)

    def test_unusable_blood_pressure_half(self) -> None:
        with pytest.raises(ValidationError):
            classify_blood_pressure(120, math.nan)


class TestEvaluateRisks:
    """Tests for evaluate_risks."""

    def test_absent_metrics_are_omitted(self) -> None:
        profile = BiometricProfile(glucose=110)

        risks = evaluate_risks(profile)

        assert list(risks) == ["glucose"]
        assert risks["glucose"].tier is RiskTier.PREDIABETIC
        assert risks["glucose"].at_risk is True

    def test_empty_profile_has_no_risks(self) -> None:
        assert evaluate_risks(BiometricProfile()) == {}

    def test_blood_pressure_reported_once(self) -> None:
        profile = BiometricProfile(systolic=142, diastolic=82)

        risks = evaluate_risks(profile)

        assert set(risks) == {"blood_pressure"}
        assert risks["blood_pressure"].tier is RiskTier.STAGE_2
        assert risks["blood_pressure"].value == 142

    def test_near_optimal_ldl_not_at_risk(self) -> None:
        risks = evaluate_risks(BiometricProfile(ldl=110))
        assert risks["ldl"].at_risk is False


class TestHealthyFlag:
    """Tests for is_healthy and derive_metrics."""

    def test_normal_bmi_without_flags_is_healthy(self) -> None:
        derived = derive_metrics(BiometricProfile(weight_kg=70, height_cm=175))

        assert derived.bmi == 22.9
        assert derived.bmi_category is BMICategory.NORMAL
        assert derived.is_healthy is True

    @pytest.mark.parametrize("flag", ["diabetes", "high_cholesterol", "high_blood_pressure"])
    def test_any_condition_flag_forces_unhealthy(self, flag) -> None:
        profile = BiometricProfile(weight_kg=70, height_cm=175, **{flag: True})
        assert derive_metrics(profile).is_healthy is False

    def test_false_flags_do_not_count(self) -> None:
        profile = BiometricProfile(weight_kg=70, height_cm=175, diabetes=False)
        assert derive_metrics(profile).is_healthy is True

    def test_unknown_bmi_passes_through(self) -> None:
        """Missing weight/height is not penalized."""
        derived = derive_metrics(BiometricProfile())

        assert derived.bmi is None
        assert derived.bmi_category is BMICategory.UNKNOWN
        assert derived.is_healthy is True

    def test_obese_is_unhealthy(self) -> None:
        assert is_healthy(BiometricProfile(), BMICategory.OBESE) is False

    def test_deterministic(self) -> None:
        profile = BiometricProfile(weight_kg=91.3, height_cm=182, glucose=104)
        assert derive_metrics(profile) == derive_metrics(profile)
