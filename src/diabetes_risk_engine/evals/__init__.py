"""
Evaluation gates module.

- golden_eval: end-to-end regression gate over the golden cases
"""

from diabetes_risk_engine.evals.golden_eval import (
    FixedClock,
    GoldenEvalReport,
    GoldenEvalResult,
    build_case_service,
    check_report,
    run_golden_eval,
    run_golden_eval_cli,
)

__all__ = [
    "FixedClock",
    "GoldenEvalResult",
    "GoldenEvalReport",
    "build_case_service",
    "check_report",
    "run_golden_eval",
    "run_golden_eval_cli",
]
