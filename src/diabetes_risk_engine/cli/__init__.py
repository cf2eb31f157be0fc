"""
CLI module - unified command-line interface (`risk-engine`).
"""

from diabetes_risk_engine.cli.commands import (
    main,
    run_analyze_cli,
    run_classify_cli,
    run_eval_cli,
    run_report_cli,
)

__all__ = [
    "main",
    "run_report_cli",
    "run_analyze_cli",
    "run_classify_cli",
    "run_eval_cli",
]
