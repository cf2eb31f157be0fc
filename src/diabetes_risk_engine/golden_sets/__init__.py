"""
Golden Sets Package

Patients, notes and expected reports used by the evaluation gate and the
end-to-end tests.

Example:
    from diabetes_risk_engine.golden_sets import GoldenCase, get_all_golden_cases
"""

from diabetes_risk_engine.golden_sets.diabetes_cases import (
    BEHAVIOUR_CASES,
    GOLDEN_TODAY,
    SEED_CASES,
    GoldenCase,
    get_all_golden_cases,
    get_case_by_id,
)

__all__ = [
    "GoldenCase",
    "GOLDEN_TODAY",
    "SEED_CASES",
    "BEHAVIOUR_CASES",
    "get_all_golden_cases",
    "get_case_by_id",
]
