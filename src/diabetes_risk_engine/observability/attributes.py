"""
Semantic Conventions for Span Attributes

Attribute keys for the risk pipeline spans, under a custom `risk.` namespace,
plus the `eval.` keys used by the golden-set run.
"""

# ---------------------------------------------------------------------------
# RISK NAMESPACE (custom)
# ---------------------------------------------------------------------------

RISK_PATIENT_ID = "risk.patient_id"
RISK_NOTE_COUNT = "risk.note_count"  # notes fetched from the note store
RISK_INDEXED_COUNT = "risk.indexed_count"  # non-blank notes written to the index
RISK_DELETED_COUNT = "risk.deleted_count"
RISK_HIT_COUNT = "risk.hit_count"  # notes returned by the trigger search
RISK_TRIGGER_COUNT = "risk.trigger_count"
RISK_LEVEL = "risk.level"  # "None", "Borderline", ...
RISK_INDEX_BACKEND = "risk.index_backend"


# ---------------------------------------------------------------------------
# EVAL NAMESPACE (custom)
# ---------------------------------------------------------------------------

EVAL_CASE_ID = "eval.case.id"
EVAL_CASE_PASSED = "eval.case.passed"  # bool
EVAL_CASE_ERROR = "eval.case.error"


# ---------------------------------------------------------------------------
# HELPER FUNCTIONS
# ---------------------------------------------------------------------------


def report_attributes(patient_id: int, risk_level: str, trigger_count: int) -> dict:
    """Create attributes dict for a finished risk report span."""
    return {
        RISK_PATIENT_ID: patient_id,
        RISK_LEVEL: risk_level,
        RISK_TRIGGER_COUNT: trigger_count,
    }


def eval_case_attributes(
    case_id: str,
    passed: bool,
    error: str | None = None,
) -> dict:
    """Create attributes dict for an eval case span."""
    attrs = {
        EVAL_CASE_ID: case_id,
        EVAL_CASE_PASSED: passed,
    }
    if error:
        attrs[EVAL_CASE_ERROR] = error
    return attrs
