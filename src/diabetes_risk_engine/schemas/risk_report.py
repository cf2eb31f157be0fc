"""
Risk Report Schema - the OUTPUT CONTRACT of the engine.

A RiskReport is built fresh for every request and never mutated afterwards.
It serialises with the camelCase field names the report API has always
returned (`patientId`, `riskLevel`, `triggerTerms`).
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RiskLevel(str, Enum):
    """Discrete diabetes risk tier."""

    NONE = "None"
    BORDERLINE = "Borderline"
    IN_DANGER = "In Danger"
    EARLY_ONSET = "Early Onset"


class RiskReport(BaseModel):
    """
    Diabetes risk assessment for one patient.

    `trigger_terms` behaves as a case-insensitive set: duplicates that differ
    only by case are collapsed, and the terms are stored sorted so two reports
    built from the same notes serialise identically.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    patient_id: int = Field(
        alias="patientId",
        description="Identifier of the assessed patient",
    )

    risk_level: RiskLevel = Field(
        alias="riskLevel",
        description="Risk tier from the decision table",
    )

    trigger_terms: tuple[str, ...] = Field(
        default=(),
        alias="triggerTerms",
        description="Non-negated trigger terms found across the patient's notes",
    )

    @field_validator("trigger_terms", mode="after")
    @classmethod
    def _dedupe_case_insensitive(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        unique: dict[str, str] = {}
        for term in value:
            key = term.casefold()
            if key not in unique or term < unique[key]:
                unique[key] = term
        return tuple(unique[key] for key in sorted(unique))

    @property
    def trigger_count(self) -> int:
        return len(self.trigger_terms)

    def to_api_dict(self) -> dict:
        """Serialise with API field names."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def empty(cls, patient_id: int) -> "RiskReport":
        """Report for a patient with nothing to assess."""
        return cls(patient_id=patient_id, risk_level=RiskLevel.NONE, trigger_terms=())
