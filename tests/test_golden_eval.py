"""
Tests for the golden set and its eval gate.

The gate itself is the main assertion: every golden case must pass against
the in-memory pipeline. The remaining tests pin down how failures are
reported.
"""

from datetime import date
from unittest.mock import patch

import pytest

from diabetes_risk_engine.core.errors import IndexUnavailableError
from diabetes_risk_engine.evals.golden_eval import (
    build_case_service,
    check_report,
    run_golden_eval,
    run_golden_eval_cli,
)
from diabetes_risk_engine.golden_sets import (
    BEHAVIOUR_CASES,
    GOLDEN_TODAY,
    SEED_CASES,
    GoldenCase,
    get_all_golden_cases,
    get_case_by_id,
)
from diabetes_risk_engine.schemas.risk_report import RiskLevel, RiskReport


def _case(**overrides) -> GoldenCase:
    values = dict(
        id="t-1",
        description="test case",
        patient_id=9,
        date_of_birth=date(1980, 1, 1),
        gender="Female",
        notes=["Vertiges.", "Fumeuse."],
        expected_risk_level=RiskLevel.BORDERLINE,
        expected_triggers=["Fumeuse", "Vertiges"],
    )
    values.update(overrides)
    return GoldenCase(**values)


# ---------------------------------------------------------------------------
# GOLDEN SET
# ---------------------------------------------------------------------------


class TestGoldenSet:
    """Sanity checks on the case definitions."""

    def test_case_ids_are_unique(self):
        ids = [c.id for c in get_all_golden_cases()]
        assert len(ids) == len(set(ids))

    def test_every_tier_has_a_seed_case(self):
        assert {c.expected_risk_level for c in SEED_CASES} == set(RiskLevel)

    def test_all_cases_is_seed_plus_behaviour(self):
        assert get_all_golden_cases() == SEED_CASES + BEHAVIOUR_CASES

    def test_forbidden_and_expected_do_not_overlap(self):
        for case in get_all_golden_cases():
            assert not set(case.expected_triggers) & set(case.forbidden_triggers), case.id

    def test_distinct_wordings_case(self):
        case = get_case_by_id("recall-distinct-wordings")

        report = build_case_service(case).get_risk_report(case.patient_id)

        assert report.trigger_terms == ("fumeur", "Tabagisme")
        assert report.risk_level == RiskLevel.BORDERLINE

    def test_get_case_by_id(self):
        assert get_case_by_id("seed-early-onset").patient_id == 4
        assert get_case_by_id("missing") is None


# ---------------------------------------------------------------------------
# THE GATE
# ---------------------------------------------------------------------------


class TestGoldenGate:
    """Every golden case must pass."""

    @pytest.mark.parametrize("case", get_all_golden_cases(), ids=lambda c: c.id)
    def test_case_passes(self, case):
        report = build_case_service(case, GOLDEN_TODAY).get_risk_report(case.patient_id)
        result = check_report(case, report)

        assert result.passed, result.error

    def test_run_golden_eval(self):
        report = run_golden_eval()

        assert report.all_passed
        assert report.total_cases == len(get_all_golden_cases())
        assert report.pass_rate == 1.0

    def test_cli_exit_code(self, capsys):
        assert run_golden_eval_cli(verbose=False) == 0
        assert "GOLDEN EVAL GATE: PASSED" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# FAILURE REPORTING
# ---------------------------------------------------------------------------


class TestCheckReport:
    """Test how mismatches are described."""

    def test_matching_report_passes(self):
        report = RiskReport(patient_id=9, risk_level=RiskLevel.BORDERLINE, trigger_terms=("Fumeuse", "Vertiges"))
        result = check_report(_case(), report)

        assert result.passed
        assert result.error is None

    def test_missing_report(self):
        result = check_report(_case(), None)

        assert not result.passed
        assert "not found" in result.error

    def test_missing_and_unexpected_triggers(self):
        report = RiskReport(patient_id=9, risk_level=RiskLevel.BORDERLINE, trigger_terms=("Poids", "Vertiges"))
        result = check_report(_case(), report)

        assert not result.passed
        assert result.missing_triggers == ["Fumeuse"]
        assert result.unexpected_triggers == ["Poids"]

    def test_forbidden_trigger_is_named(self):
        case = _case(expected_triggers=["Vertiges"], forbidden_triggers=["Rechute"],
                     expected_risk_level=RiskLevel.NONE)
        report = RiskReport(patient_id=9, risk_level=RiskLevel.NONE, trigger_terms=("Rechute", "Vertiges"))

        result = check_report(case, report)

        assert "Forbidden triggers reported: Rechute" in result.error

    def test_triggers_compare_case_insensitively(self):
        case = _case(expected_triggers=["Fumeuse", "Rechute"])
        report = RiskReport(patient_id=9, risk_level=RiskLevel.BORDERLINE, trigger_terms=("fumeuse", "rechute"))

        assert check_report(case, report).passed

    def test_forbidden_entry_leaks_through_a_synonym(self):
        case = _case(expected_triggers=["Vertiges"], forbidden_triggers=["Rechute"],
                     expected_risk_level=RiskLevel.NONE)
        report = RiskReport(patient_id=9, risk_level=RiskLevel.NONE, trigger_terms=("Récidive", "Vertiges"))

        result = check_report(case, report)

        assert not result.passed
        assert "Forbidden triggers reported: Récidive" in result.error

    def test_wrong_level(self):
        report = RiskReport(patient_id=9, risk_level=RiskLevel.IN_DANGER, trigger_terms=("Fumeuse", "Vertiges"))
        result = check_report(_case(), report)

        assert "expected 'Borderline', got 'In Danger'" in result.error


class TestRunGoldenEval:
    """Test aggregation over cases."""

    def test_custom_cases(self):
        failing = _case(id="t-2", expected_risk_level=RiskLevel.EARLY_ONSET)
        report = run_golden_eval([_case(), failing])

        assert report.passed_cases == 1
        assert report.failed_cases == 1
        assert report.pass_rate == 0.5
        assert not report.all_passed

    def test_engine_error_fails_case(self):
        with patch(
            "diabetes_risk_engine.evals.golden_eval.build_case_service",
            side_effect=IndexUnavailableError("cluster down"),
        ):
            report = run_golden_eval([_case()])

        assert report.results[0].error == "INDEX_UNAVAILABLE: cluster down"

    def test_empty_case_list(self):
        report = run_golden_eval([])

        assert report.total_cases == 0
        assert report.pass_rate == 0.0
