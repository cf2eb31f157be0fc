"""
Classification module - risk tier from demographics and trigger count.

RuleBasedRiskClassifier is the only implementation; any object satisfying
core.protocols.RiskClassifier can be injected into the report service instead.
"""

from diabetes_risk_engine.classification.risk_rules import (
    AGE_THRESHOLD,
    RuleBasedRiskClassifier,
    classify_risk,
    compute_age,
    normalize_gender,
)

__all__ = [
    "AGE_THRESHOLD",
    "RuleBasedRiskClassifier",
    "classify_risk",
    "compute_age",
    "normalize_gender",
]
