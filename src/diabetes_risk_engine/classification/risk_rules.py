"""
Risk Classifier - deterministic decision table.

Maps (age, gender, trigger count) to a RiskLevel. Pure: no I/O, no state.

DECISION TABLE:
---------------
    trigger_count == 0                     -> None   (checked first)

    age > 30
        trigger_count >= 8                 -> Early Onset
        trigger_count in 6..7              -> In Danger
        trigger_count in 2..5              -> Borderline
        trigger_count == 1                 -> None

    age <= 30, male
        trigger_count >= 5                 -> Early Onset
        trigger_count >= 3                 -> In Danger
        otherwise                          -> None

    age <= 30, female
        trigger_count >= 7                 -> Early Onset
        trigger_count >= 4                 -> In Danger
        otherwise                          -> None

    age <= 30, any other gender            -> None

Early Onset is always tested before In Danger: the lower bounds overlap.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from diabetes_risk_engine.schemas.risk_report import RiskLevel

AGE_THRESHOLD = 30

MALE_VALUES = frozenset({"male", "m", "homme", "h", "masculin"})
FEMALE_VALUES = frozenset({"female", "f", "femme", "féminin"})


def normalize_gender(gender: str | None) -> Literal["male", "female"] | None:
    """Map the gender labels used by the patient service to male/female."""
    if gender is None:
        return None
    value = gender.strip().lower()
    if value in MALE_VALUES:
        return "male"
    if value in FEMALE_VALUES:
        return "female"
    return None


def compute_age(date_of_birth: date | datetime, today: date | None = None) -> int:
    """Whole years since `date_of_birth`, minus one if this year's birthday is still ahead."""
    if isinstance(date_of_birth, datetime):
        date_of_birth = date_of_birth.date()
    today = today or date.today()

    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


class RuleBasedRiskClassifier:
    """The decision table above, behind the RiskClassifier protocol."""

    def __init__(self, age_threshold: int = AGE_THRESHOLD):
        self.age_threshold = age_threshold

    def classify(self, age: int, gender: str | None, trigger_count: int) -> RiskLevel:
        if trigger_count < 0:
            raise ValueError(f"trigger_count must be >= 0, got {trigger_count}")

        if trigger_count == 0:
            return RiskLevel.NONE

        if age > self.age_threshold:
            if trigger_count >= 8:
                return RiskLevel.EARLY_ONSET
            if trigger_count >= 6:
                return RiskLevel.IN_DANGER
            if trigger_count >= 2:
                return RiskLevel.BORDERLINE
            return RiskLevel.NONE

        sex = normalize_gender(gender)
        if sex == "male":
            if trigger_count >= 5:
                return RiskLevel.EARLY_ONSET
            if trigger_count >= 3:
                return RiskLevel.IN_DANGER
        elif sex == "female":
            if trigger_count >= 7:
                return RiskLevel.EARLY_ONSET
            if trigger_count >= 4:
                return RiskLevel.IN_DANGER

        return RiskLevel.NONE


def classify_risk(age: int, gender: str | None, trigger_count: int) -> RiskLevel:
    """Shortcut for the default rule table."""
    return RuleBasedRiskClassifier().classify(age, gender, trigger_count)
