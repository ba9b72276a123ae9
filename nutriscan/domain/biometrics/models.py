"""
Biometric domain models.

BiometricProfile holds what the user typed in the profile form;
DerivedMetrics and RiskAssessment are pure functions of it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from nutriscan.domain.shared.errors import ValidationError


class ScoringMode(str, Enum):
    """How the backend weights nutrients when scoring."""

    PORTION_AWARE = "portion-aware"
    PER_100G = "per-100g"


class BMICategory(str, Enum):
    """BMI classification (WHO adult brackets)."""

    UNDERWEIGHT = "Underweight"
    NORMAL = "Normal"
    OVERWEIGHT = "Overweight"
    OBESE = "Obese"
    UNKNOWN = "Unknown"


class RiskTier(str, Enum):
    """
    Categorical bucket for one biometric value.

    Labels differ per metric (glucose uses PREDIABETIC/DIABETIC,
    LDL uses NEAR_OPTIMAL/BORDERLINE_HIGH...), so the enum is the
    union of all table labels.
    """

    OPTIMAL = "Optimal"
    NORMAL = "Normal"
    NEAR_OPTIMAL = "Near optimal"
    BORDERLINE = "Borderline"
    BORDERLINE_HIGH = "Borderline high"
    PREDIABETIC = "Pre-diabetic"
    DIABETIC = "Diabetic"
    ELEVATED = "Elevated"
    HIGH = "High"
    VERY_HIGH = "Very high"
    LOW = "Low"
    PROTECTIVE = "Protective"
    STAGE_1 = "Hypertension stage 1"
    STAGE_2 = "Hypertension stage 2"
    INCREASED = "Increased"


NUMERIC_FIELDS: tuple[str, ...] = (
    "weight_kg",
    "height_cm",
    "glucose",
    "hba1c",
    "ldl",
    "hdl",
    "triglycerides",
    "systolic",
    "diastolic",
    "age",
    "waist",
    "alt",
    "ast",
    "ggt",
    "creatinine",
    "crp",
    "uric_acid",
)

CONDITION_FLAGS: tuple[str, ...] = (
    "diabetes",
    "high_cholesterol",
    "high_blood_pressure",
)

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


def parse_measurement(field_name: str, raw: Any) -> Optional[float]:
    """
    Parse one form value into a finite non-negative float.

    Empty strings and None mean "unknown". Parsing uses Python's
    float() on the stripped text, so decimal commas and grouping
    separators are rejected rather than guessed.

    Raises:
        ValidationError: If the value is not a finite number >= 0

    Example:
        >>> parse_measurement("weight_kg", "75.5")
        75.5
        >>> parse_measurement("weight_kg", "") is None
        True
    """
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValidationError(f"{field_name} must be a number, got {raw!r}")
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            raise ValidationError(f"{field_name} must be a number, got {raw!r}") from None
    elif isinstance(raw, (int, float)):
        value = float(raw)
    else:
        raise ValidationError(f"{field_name} must be a number, got {raw!r}")

    if not math.isfinite(value):
        raise ValidationError(f"{field_name} must be finite, got {raw!r}")
    if value < 0:
        raise ValidationError(f"{field_name} must not be negative, got {raw!r}")
    return value


def parse_flag(field_name: str, raw: Any) -> Optional[bool]:
    """Parse a condition toggle; empty means unknown."""
    if raw is None or isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if not text:
        return None
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValidationError(f"{field_name} must be a yes/no value, got {raw!r}")


class BiometricProfile(BaseModel):
    """
    Locally edited health profile.

    Every field is optional; None means unknown, never zero.
    Field names are the clinical names; the backend uses
    blood_sugar_mg_dl / ldl_cholesterol_mg_dl / scoringMode for
    three of them, exposed as aliases.

    Example:
        >>> profile = BiometricProfile.from_form({"weight_kg": "80", "height_cm": "180"})
        >>> profile.to_payload()
        {'weight_kg': 80.0, 'height_cm': 180.0}
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    weight_kg: Optional[float] = Field(None, description="Body weight in kg")
    height_cm: Optional[float] = Field(None, description="Height in cm")
    glucose: Optional[float] = Field(
        None, alias="blood_sugar_mg_dl", description="Fasting glucose mg/dL"
    )
    hba1c: Optional[float] = Field(None, description="HbA1c in %")
    ldl: Optional[float] = Field(
        None, alias="ldl_cholesterol_mg_dl", description="LDL cholesterol mg/dL"
    )
    hdl: Optional[float] = Field(None, description="HDL cholesterol mg/dL")
    triglycerides: Optional[float] = Field(None, description="Triglycerides mg/dL")
    systolic: Optional[float] = Field(None, description="Systolic pressure mmHg")
    diastolic: Optional[float] = Field(None, description="Diastolic pressure mmHg")
    age: Optional[float] = Field(None, description="Age in years")
    waist: Optional[float] = Field(None, description="Waist circumference cm")
    alt: Optional[float] = Field(None, description="ALT U/L")
    ast: Optional[float] = Field(None, description="AST U/L")
    ggt: Optional[float] = Field(None, description="GGT U/L")
    creatinine: Optional[float] = Field(None, description="Creatinine mg/dL")
    crp: Optional[float] = Field(None, description="C-reactive protein mg/L")
    uric_acid: Optional[float] = Field(None, description="Uric acid mg/dL")

    diabetes: Optional[bool] = None
    high_cholesterol: Optional[bool] = None
    high_blood_pressure: Optional[bool] = None

    scoring_mode: Optional[ScoringMode] = Field(None, alias="scoringMode")

    @field_validator(*NUMERIC_FIELDS, mode="before")
    @classmethod
    def finite_non_negative(cls, v: Any, info: ValidationInfo) -> Optional[float]:
        """Reject NaN, infinities, negatives and non-numeric text."""
        return parse_measurement(info.field_name, v)

    @field_validator(*CONDITION_FLAGS, mode="before")
    @classmethod
    def yes_no(cls, v: Any, info: ValidationInfo) -> Optional[bool]:
        return parse_flag(info.field_name, v)

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> BiometricProfile:
        """
        Build a profile from raw form input.

        Raises:
            ValidationError: If any value is invalid (first offending field)
        """
        values: dict[str, Any] = {}
        for name, raw in form.items():
            if name in NUMERIC_FIELDS:
                values[name] = parse_measurement(name, raw)
            elif name in CONDITION_FLAGS:
                values[name] = parse_flag(name, raw)
            elif name in ("scoring_mode", "scoringMode"):
                values["scoring_mode"] = _parse_scoring_mode(raw)
            else:
                raise ValidationError(f"Unknown profile field: {name}")
        return cls(**values)

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> BiometricProfile:
        """Extract the biometric part of a backend user record.

        Unknown keys are ignored; invalid values are dropped with
        the rest of the record kept.
        """
        known = set(NUMERIC_FIELDS) | set(CONDITION_FLAGS)
        aliases = {
            "blood_sugar_mg_dl": "glucose",
            "ldl_cholesterol_mg_dl": "ldl",
            "scoringMode": "scoring_mode",
        }
        values: dict[str, Any] = {}
        for key, raw in data.items():
            name = aliases.get(key, key)
            if name not in known and name != "scoring_mode":
                continue
            try:
                if name == "scoring_mode":
                    values[name] = _parse_scoring_mode(raw)
                elif name in CONDITION_FLAGS:
                    values[name] = parse_flag(name, raw)
                else:
                    values[name] = parse_measurement(name, raw)
            except ValidationError:
                continue
        return cls(**values)

    def to_payload(self) -> dict[str, Any]:
        """Sparse PUT /user/profile body (wire names, unknowns omitted)."""
        data = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        return data

    def has_condition(self) -> bool:
        """True if any condition flag is known to be set."""
        return any(getattr(self, flag) is True for flag in CONDITION_FLAGS)


def _parse_scoring_mode(raw: Any) -> Optional[ScoringMode]:
    if raw is None or raw == "":
        return None
    if isinstance(raw, ScoringMode):
        return raw
    try:
        return ScoringMode(str(raw).strip())
    except ValueError:
        allowed = ", ".join(m.value for m in ScoringMode)
        raise ValidationError(f"scoringMode must be one of {allowed}, got {raw!r}") from None


@dataclass(frozen=True)
class DerivedMetrics:
    """
    Values computed from a BiometricProfile snapshot.

    Never persisted independently.
    """

    bmi: Optional[float]
    bmi_category: BMICategory
    is_healthy: bool


@dataclass(frozen=True)
class RiskAssessment:
    """Risk tier of one metric value.

    Attributes:
        metric: Metric name (e.g. "glucose", "blood_pressure")
        value: Input value (systolic for blood pressure)
        tier: Classified tier
        at_risk: True when the tier is outside the healthy band
    """

    metric: str
    value: float
    tier: RiskTier
    at_risk: bool
