"""
Golden Set Eval - the regression gate for the whole pipeline.

Every golden case is run end to end through a RiskReportService wired with
the in-memory collaborators and index, then checked against its expected
tier and trigger set.

WHAT THIS GATE CHECKS:
----------------------
1. A report is produced (the patient exists)
2. The trigger set is exactly the expected one
3. No forbidden trigger leaked through (negation, false positives)
4. The tier matches the decision table

Deterministic and offline: no index server and no network, so it can run on
every commit. Catalog edits, negation word lists and fuzziness changes all
show up here first.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from diabetes_risk_engine.analysis.aggregator import CatalogResolver
from diabetes_risk_engine.collaborators.memory import InMemoryNoteStore, InMemoryPatientDirectory
from diabetes_risk_engine.core.errors import RiskEngineError
from diabetes_risk_engine.golden_sets import GOLDEN_TODAY, GoldenCase, get_all_golden_cases
from diabetes_risk_engine.index.store import InMemoryNoteIndex
from diabetes_risk_engine.observability.attributes import eval_case_attributes
from diabetes_risk_engine.observability.tracer import get_tracer
from diabetes_risk_engine.schemas.records import NoteRecord, PatientRecord
from diabetes_risk_engine.schemas.risk_report import RiskReport
from diabetes_risk_engine.service.report_service import RiskReportService


_resolver = CatalogResolver()


class FixedClock:
    """Clock pinned to one date."""

    def __init__(self, today: date):
        self._today = today

    def today(self) -> date:
        return self._today


@dataclass
class GoldenEvalResult:
    """Result for a single golden case."""
    case_id: str
    passed: bool
    error: str | None = None
    risk_level: str | None = None
    triggers: list[str] = field(default_factory=list)
    missing_triggers: list[str] = field(default_factory=list)
    unexpected_triggers: list[str] = field(default_factory=list)


@dataclass
class GoldenEvalReport:
    """Aggregate results across all cases."""
    total_cases: int
    passed_cases: int
    failed_cases: int
    pass_rate: float
    results: list[GoldenEvalResult]

    @property
    def all_passed(self) -> bool:
        return self.failed_cases == 0


def build_case_service(case: GoldenCase, today: date = GOLDEN_TODAY) -> RiskReportService:
    """In-memory service holding exactly the case's patient and notes."""
    patient = PatientRecord(
        id=case.patient_id,
        date_of_birth=case.date_of_birth,
        gender=case.gender,
    )
    notes = [
        NoteRecord(id=f"{case.id}-{i}", patient_id=case.patient_id, text=text)
        for i, text in enumerate(case.notes, start=1)
    ]
    return RiskReportService(
        patients=InMemoryPatientDirectory([patient]),
        notes=InMemoryNoteStore(notes),
        index=InMemoryNoteIndex(),
        clock=FixedClock(today),
    )


def check_report(case: GoldenCase, report: RiskReport | None) -> GoldenEvalResult:
    """
    Compare one report with the case expectations.

    Triggers are compared case-insensitively, the way the aggregator
    deduplicates them. Forbidden triggers name catalog entries, so a reported
    word leaks when it resolves to one ("récidive" leaks "Rechute").
    """
    if report is None:
        return GoldenEvalResult(case_id=case.id, passed=False, error="No report (patient not found)")

    found = {term.casefold(): term for term in report.trigger_terms}
    expected = {term.casefold(): term for term in case.expected_triggers}
    errors = []

    missing = sorted(expected[key] for key in expected.keys() - found.keys())
    unexpected = sorted(found[key] for key in found.keys() - expected.keys())
    if missing:
        errors.append(f"Missing triggers: {', '.join(missing)}")
    if unexpected:
        errors.append(f"Unexpected triggers: {', '.join(unexpected)}")

    forbidden = {name.casefold() for name in case.forbidden_triggers}
    leaked = sorted(
        term for key, term in found.items()
        if key in forbidden or _resolver.resolve(term).casefold() in forbidden
    )
    if leaked:
        errors.append(f"Forbidden triggers reported: {', '.join(leaked)}")

    if report.risk_level != case.expected_risk_level:
        errors.append(
            f"Risk level: expected '{case.expected_risk_level.value}', got '{report.risk_level.value}'"
        )

    return GoldenEvalResult(
        case_id=case.id,
        passed=not errors,
        error="; ".join(errors) if errors else None,
        risk_level=report.risk_level.value,
        triggers=list(report.trigger_terms),
        missing_triggers=missing,
        unexpected_triggers=unexpected,
    )


def run_golden_eval(
    cases: list[GoldenCase] | None = None,
    today: date = GOLDEN_TODAY,
    verbose: bool = False,
) -> GoldenEvalReport:
    """
    Run every golden case through the pipeline.

    Args:
        cases: Optional list of cases to run. Defaults to all golden cases.
        today: Date used to compute ages.
        verbose: If True, print progress during execution.

    Returns:
        GoldenEvalReport with pass/fail for each case.
    """
    cases = cases if cases is not None else get_all_golden_cases()
    tracer = get_tracer()
    results: list[GoldenEvalResult] = []

    for case in cases:
        if verbose:
            print(f"Running golden eval: {case.id}...")

        with tracer.start_span("eval.golden_case") as span:
            try:
                report = build_case_service(case, today).get_risk_report(case.patient_id)
                result = check_report(case, report)
            except RiskEngineError as e:
                result = GoldenEvalResult(case_id=case.id, passed=False, error=f"{e.code}: {e.message}")

            span.set_attributes(eval_case_attributes(case.id, result.passed, result.error))

        results.append(result)

    passed = sum(1 for r in results if r.passed)
    failed = len(results) - passed

    return GoldenEvalReport(
        total_cases=len(results),
        passed_cases=passed,
        failed_cases=failed,
        pass_rate=passed / len(results) if results else 0.0,
        results=results,
    )


def run_golden_eval_cli(verbose: bool = True) -> int:
    """
    CLI entry point for the golden eval.
    Returns exit code 0 on success, 1 on failure.
    """
    print("=" * 60)
    print("GOLDEN SET EVAL")
    print("=" * 60)

    report = run_golden_eval(verbose=verbose)

    print("\n" + "=" * 60)
    print("RESULTS")
    print("=" * 60)

    for result in report.results:
        status = "PASS" if result.passed else "FAIL"
        print(f"  [{status}] {result.case_id} -> {result.risk_level}: {', '.join(result.triggers) or '-'}")
        if not result.passed:
            print(f"        Error: {result.error}")

    print("\n" + "-" * 60)
    print(f"Total: {report.total_cases} | "
          f"Passed: {report.passed_cases} | "
          f"Failed: {report.failed_cases} | "
          f"Pass Rate: {report.pass_rate:.1%}")

    if report.all_passed:
        print("\n>>> GOLDEN EVAL GATE: PASSED <<<")
        return 0
    else:
        print("\n>>> GOLDEN EVAL GATE: FAILED <<<")
        return 1
