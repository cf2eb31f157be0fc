"""
CLI commands - entry points for reports, ad-hoc analysis and the eval gate.

Each command follows a consistent pattern:
1. Parse arguments
2. Load environment
3. Run
4. Print results (JSON on stdout, logs on stderr)
5. Return exit code
"""

from __future__ import annotations

import argparse
import json
import sys

from dotenv import load_dotenv

from diabetes_risk_engine.config import get_config
from diabetes_risk_engine.core.errors import RiskEngineError
from diabetes_risk_engine.observability import init_tracing, setup_logging, shutdown_tracing


def _load_env() -> None:
    """Load environment variables from .env file."""
    load_dotenv()


def _print_json(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def run_report_cli(argv: list[str] | None = None) -> int:
    """Build the risk report of one patient with the configured backends."""
    from diabetes_risk_engine.service import get_report_service

    parser = argparse.ArgumentParser(prog="risk-engine report", description="Build a patient's risk report")
    parser.add_argument("patient_id", type=int, help="Patient identifier")
    args = parser.parse_args(argv)

    setup_logging(get_config().log_level)
    init_tracing()
    try:
        report = get_report_service().get_risk_report(args.patient_id)
    except RiskEngineError as e:
        print(json.dumps(e.to_dict(), ensure_ascii=False), file=sys.stderr)
        return 2
    finally:
        shutdown_tracing()

    if report is None:
        print(f"Patient {args.patient_id} not found", file=sys.stderr)
        return 1

    _print_json(report.to_api_dict())
    return 0


def run_analyze_cli(argv: list[str] | None = None) -> int:
    """Run one free-text note through an in-memory pipeline and show every mention."""
    from diabetes_risk_engine.analysis import TriggerAggregator
    from diabetes_risk_engine.classification import RuleBasedRiskClassifier
    from diabetes_risk_engine.index import InMemoryNoteIndex, NoteIndexSync, TriggerSearch
    from diabetes_risk_engine.schemas.records import NoteRecord

    parser = argparse.ArgumentParser(prog="risk-engine analyze", description="Analyze a clinical note")
    parser.add_argument("text", help="Note text (French)")
    parser.add_argument("--age", type=int, default=40, help="Patient age (default: 40)")
    parser.add_argument("--gender", default="Female", help="Patient gender (default: Female)")
    parser.add_argument(
        "--canonical", action="store_true", help="Report catalog entries instead of the words found"
    )
    args = parser.parse_args(argv)

    setup_logging(get_config().log_level)

    index = InMemoryNoteIndex()
    NoteIndexSync(index).sync(0, [NoteRecord(id="cli-1", patient_id=0, text=args.text)])
    hits = TriggerSearch(index).search(0)

    aggregator = TriggerAggregator(report_canonical_names=args.canonical)
    triggers = aggregator.aggregate(hits)
    risk_level = RuleBasedRiskClassifier().classify(args.age, args.gender, len(triggers))

    _print_json({
        "mentions": [
            {"surface": m.surface, "canonicalName": m.canonical_name, "negated": m.negated}
            for m in aggregator.collect_mentions(hits, include_negated=True)
        ],
        "triggerTerms": triggers,
        "riskLevel": risk_level.value,
    })
    return 0


def run_classify_cli(argv: list[str] | None = None) -> int:
    """Print the tier for a demographic profile and trigger count."""
    from diabetes_risk_engine.classification import classify_risk

    parser = argparse.ArgumentParser(prog="risk-engine classify", description="Apply the risk decision table")
    parser.add_argument("--age", type=int, required=True)
    parser.add_argument("--gender", required=True)
    parser.add_argument("--triggers", type=int, required=True, help="Number of distinct triggers")
    args = parser.parse_args(argv)

    try:
        print(classify_risk(args.age, args.gender, args.triggers).value)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    return 0


def run_eval_cli(argv: list[str] | None = None) -> int:
    """CLI entry point for the golden set eval."""
    from diabetes_risk_engine.evals.golden_eval import run_golden_eval_cli

    parser = argparse.ArgumentParser(prog="risk-engine eval", description="Run the golden set eval")
    parser.add_argument("--quiet", action="store_true", help="Minimal output")
    args = parser.parse_args(argv)

    return run_golden_eval_cli(verbose=not args.quiet)


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entry point with subcommands.

    Usage:
        risk-engine report 3
        risk-engine analyze "Pas de vertiges, HbA1C élevée."
        risk-engine classify --age 25 --gender Male --triggers 3
        risk-engine eval
    """
    _load_env()

    parser = argparse.ArgumentParser(
        prog="risk-engine",
        description="Diabetes risk assessment engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  report      Build a patient's report (patient/note services + index)
  analyze     Analyze one note in memory, showing negated mentions too
  classify    Apply the decision table to age, gender and trigger count
  eval        Run the golden set eval gate

Examples:
  risk-engine report 4
  risk-engine analyze "Le patient ne présente aucune anomalie de cholestérol."
  risk-engine classify --age 35 --gender Female --triggers 7
        """,
    )

    parser.add_argument(
        "command",
        choices=["report", "analyze", "classify", "eval"],
        help="Command to run",
    )

    # Parse just the command first
    args, remaining = parser.parse_known_args(argv)

    commands = {
        "report": run_report_cli,
        "analyze": run_analyze_cli,
        "classify": run_classify_cli,
        "eval": run_eval_cli,
    }

    try:
        return commands[args.command](remaining)
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
