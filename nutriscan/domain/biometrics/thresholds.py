"""
Clinical breakpoint tables.

Each table is an ascending sequence of (lower_bound, tier, at_risk)
brackets. A value falls in the last bracket whose lower bound it
reaches, so every bracket is inclusive on its lower bound.
"""

from __future__ import annotations

from typing import NamedTuple

from nutriscan.domain.biometrics.models import RiskTier


class Bracket(NamedTuple):
    lower_bound: float
    tier: RiskTier
    at_risk: bool


ThresholdTable = tuple[Bracket, ...]


# Fasting plasma glucose, mg/dL (ADA)
GLUCOSE: ThresholdTable = (
    Bracket(0.0, RiskTier.NORMAL, False),
    Bracket(100.0, RiskTier.PREDIABETIC, True),
    Bracket(126.0, RiskTier.DIABETIC, True),
)

# HbA1c, % (ADA)
HBA1C: ThresholdTable = (
    Bracket(0.0, RiskTier.NORMAL, False),
    Bracket(5.7, RiskTier.PREDIABETIC, True),
    Bracket(6.5, RiskTier.DIABETIC, True),
)

# LDL cholesterol, mg/dL (NCEP ATP III)
LDL: ThresholdTable = (
    Bracket(0.0, RiskTier.OPTIMAL, False),
    Bracket(100.0, RiskTier.NEAR_OPTIMAL, False),
    Bracket(130.0, RiskTier.BORDERLINE_HIGH, True),
    Bracket(160.0, RiskTier.HIGH, True),
    Bracket(190.0, RiskTier.VERY_HIGH, True),
)

# HDL cholesterol, mg/dL; low HDL is the risk factor
HDL: ThresholdTable = (
    Bracket(0.0, RiskTier.LOW, True),
    Bracket(40.0, RiskTier.NORMAL, False),
    Bracket(60.0, RiskTier.PROTECTIVE, False),
)

# Fasting triglycerides, mg/dL
TRIGLYCERIDES: ThresholdTable = (
    Bracket(0.0, RiskTier.NORMAL, False),
    Bracket(150.0, RiskTier.BORDERLINE_HIGH, True),
    Bracket(200.0, RiskTier.HIGH, True),
    Bracket(500.0, RiskTier.VERY_HIGH, True),
)

# Blood pressure, mmHg (ACC/AHA 2017)
SYSTOLIC: ThresholdTable = (
    Bracket(0.0, RiskTier.NORMAL, False),
    Bracket(120.0, RiskTier.ELEVATED, True),
    Bracket(130.0, RiskTier.STAGE_1, True),
    Bracket(140.0, RiskTier.STAGE_2, True),
)

DIASTOLIC: ThresholdTable = (
    Bracket(0.0, RiskTier.NORMAL, False),
    Bracket(80.0, RiskTier.STAGE_1, True),
    Bracket(90.0, RiskTier.STAGE_2, True),
)

# Waist circumference, cm (IDF, sex not collected so male cut-offs)
WAIST: ThresholdTable = (
    Bracket(0.0, RiskTier.NORMAL, False),
    Bracket(94.0, RiskTier.INCREASED, True),
    Bracket(102.0, RiskTier.HIGH, True),
)

# Liver enzymes, U/L
ALT: ThresholdTable = (
    Bracket(0.0, RiskTier.NORMAL, False),
    Bracket(41.0, RiskTier.ELEVATED, True),
)

AST: ThresholdTable = (
    Bracket(0.0, RiskTier.NORMAL, False),
    Bracket(41.0, RiskTier.ELEVATED, True),
)

GGT: ThresholdTable = (
    Bracket(0.0, RiskTier.NORMAL, False),
    Bracket(61.0, RiskTier.ELEVATED, True),
)

# Serum creatinine, mg/dL
CREATININE: ThresholdTable = (
    Bracket(0.0, RiskTier.LOW, True),
    Bracket(0.6, RiskTier.NORMAL, False),
    Bracket(1.3, RiskTier.ELEVATED, True),
)

# hs-CRP, mg/L (AHA/CDC cardiovascular risk)
CRP: ThresholdTable = (
    Bracket(0.0, RiskTier.NORMAL, False),
    Bracket(1.0, RiskTier.BORDERLINE, True),
    Bracket(3.0, RiskTier.HIGH, True),
)

# Serum uric acid, mg/dL
URIC_ACID: ThresholdTable = (
    Bracket(0.0, RiskTier.NORMAL, False),
    Bracket(7.0, RiskTier.ELEVATED, True),
)


TABLES: dict[str, ThresholdTable] = {
    "glucose": GLUCOSE,
    "hba1c": HBA1C,
    "ldl": LDL,
    "hdl": HDL,
    "triglycerides": TRIGLYCERIDES,
    "systolic": SYSTOLIC,
    "diastolic": DIASTOLIC,
    "waist": WAIST,
    "alt": ALT,
    "ast": AST,
    "ggt": GGT,
    "creatinine": CREATININE,
    "crp": CRP,
    "uric_acid": URIC_ACID,
}


def lookup(table: ThresholdTable, value: float) -> Bracket:
    """Return the bracket value falls into.

    Raises:
        ValueError: If value is below the first bracket
    """
    if value < table[0].lower_bound:
        raise ValueError(f"value {value} below table range")
    match = table[0]
    for bracket in table:
        if value >= bracket.lower_bound:
            match = bracket
        else:
            break
    return match
