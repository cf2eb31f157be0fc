"""
Golden Set - diabetes risk cases

Golden cases are the SOURCE OF TRUTH for what a correct report looks like.
Each case fixes the patient and the notes, then what the report must say: the
exact trigger words (as written in the notes) and the risk tier.

CASE FAMILIES:
--------------
- seed-*     : the four reference patients, one per tier. Demographics and
               notes are the demo data the patient and note services ship with.
- negation-* : mentions that are ruled out in the text and must not count
- recall-*   : synonyms and misspellings that must still be found
- edge-*     : empty/blank notes and the "normal" false positive

Ages are computed against GOLDEN_TODAY so the tiers never drift.
"""

from dataclasses import dataclass, field
from datetime import date

from diabetes_risk_engine.schemas.risk_report import RiskLevel

GOLDEN_TODAY = date(2026, 1, 15)


@dataclass
class GoldenCase:
    """
    A single golden case.

    `expected_triggers` is the exact trigger set, compared case-insensitively
    (order does not matter). `forbidden_triggers` names catalog entries the
    notes mention but must not yield, kept separately so a failure says which
    rule broke.
    """

    id: str
    description: str

    # Input
    patient_id: int
    date_of_birth: date
    gender: str
    notes: list[str]

    # Expectations
    expected_risk_level: RiskLevel
    expected_triggers: list[str] = field(default_factory=list)
    forbidden_triggers: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# REFERENCE PATIENTS
# ---------------------------------------------------------------------------

SEED_CASES: list[GoldenCase] = [

    GoldenCase(
        id="seed-none",
        description="Healthy 59 year old woman, no trigger at all",
        patient_id=1,
        date_of_birth=date(1966, 12, 31),
        gender="Female",
        notes=[
            "Le patient est en bonne santé générale. Aucun symptôme significatif rapporté lors "
            "de l'examen. Toutes les analyses et les examens précédents ont montré des résultats "
            "normaux. Aucun historique de problèmes de santé majeurs ou de termes associés à des "
            "risques spécifiques.",
        ],
        expected_risk_level=RiskLevel.NONE,
    ),

    GoldenCase(
        id="seed-borderline",
        description="80 year old man with three triggers",
        patient_id=2,
        date_of_birth=date(1945, 6, 24),
        gender="Male",
        notes=[
            "Analyse récente a révélé un taux de Hémoglobine A1C légèrement au-dessus des normes. "
            "Une présence modérée de Microalbumine a été détectée lors des tests urinaires. Le "
            "patient a signalé des épisodes passés de Vertiges, mais aucun symptôme récent. Aucun "
            "autre problème significatif n’a été noté.",
        ],
        expected_risk_level=RiskLevel.BORDERLINE,
        expected_triggers=["Hémoglobine A1C", "Microalbumine", "Vertiges"],
        # "récente" must not be read as a misspelled "Rechute".
        forbidden_triggers=["Rechute"],
    ),

    GoldenCase(
        id="seed-in-danger",
        description="21 year old man with four triggers",
        patient_id=3,
        date_of_birth=date(2004, 6, 18),
        gender="Male",
        notes=[
            "Le test sanguin montre une anomalie liée au Cholestérol. Le patient a signalé des "
            "épisodes de Vertiges au cours des dernières semaines. Des tests urinaires ont révélé "
            "des traces de Microalbumine. Conseillé d’éviter les déclencheurs potentiels de rechute "
            "et de suivre un régime adapté.",
        ],
        expected_risk_level=RiskLevel.IN_DANGER,
        expected_triggers=["Cholestérol", "Microalbumine", "rechute", "Vertiges"],
    ),

    GoldenCase(
        id="seed-early-onset",
        description="23 year old woman with eight triggers",
        patient_id=4,
        date_of_birth=date(2002, 6, 28),
        gender="Female",
        notes=[
            "Les analyses sanguines révèlent une augmentation de l’Hémoglobine A1C. Des traces de "
            "Microalbumine ont été détectées lors des tests urinaires. Le patient a signalé des "
            "épisodes récurrents de Vertiges. L’examen physique a montré un Poids supérieur à la "
            "normale pour son âge et sa taille. Une Réaction allergique légère a été notée "
            "récemment. Le test de dépistage révèle un Cholestérol élevé. Le patient est une "
            "Fumeuse occasionnelle et a été conseillé d’arrêter complètement.",
        ],
        expected_risk_level=RiskLevel.EARLY_ONSET,
        expected_triggers=[
            "Cholestérol", "Fumeuse", "Hémoglobine A1C", "Microalbumine",
            "Poids", "Réaction allergique", "taille", "Vertiges",
        ],
        forbidden_triggers=["Anormal"],
    ),
]


# ---------------------------------------------------------------------------
# NEGATION, RECALL AND EDGE CASES
# ---------------------------------------------------------------------------

BEHAVIOUR_CASES: list[GoldenCase] = [

    GoldenCase(
        id="negation-contextual",
        description="Cholesterol ruled out through 'aucune anomalie'",
        patient_id=10,
        date_of_birth=date(1980, 3, 2),
        gender="Male",
        notes=["Le patient ne présente aucune anomalie de cholestérol."],
        expected_risk_level=RiskLevel.NONE,
        forbidden_triggers=["Cholestérol"],
    ),

    GoldenCase(
        id="negation-direct",
        description="Direct cues before and after the mention",
        patient_id=11,
        date_of_birth=date(1975, 9, 14),
        gender="Female",
        notes=[
            "Pas de vertiges. Microalbumine : non détectée. Cholestérol élevé détecté.",
        ],
        expected_risk_level=RiskLevel.NONE,
        expected_triggers=["Cholestérol"],
        forbidden_triggers=["Vertiges", "Microalbumine"],
    ),

    GoldenCase(
        id="recall-synonyms",
        description="Synonyms are found, and each wording counts as its own trigger",
        patient_id=12,
        date_of_birth=date(1970, 1, 20),
        gender="Male",
        notes=[
            "Taux d'HbA1C élevé au dernier bilan.",
            "Obésité confirmée, Hémoglobine A1C à surveiller.",
        ],
        expected_risk_level=RiskLevel.BORDERLINE,
        expected_triggers=["HbA1C", "Hémoglobine A1C", "Obésité"],
    ),

    GoldenCase(
        id="recall-distinct-wordings",
        description="'fumeur' and 'Tabagisme' are two triggers for a 46 year old man",
        patient_id=16,
        date_of_birth=date(1979, 6, 1),
        gender="Male",
        notes=["Patient fumeur.", "Tabagisme ancien."],
        expected_risk_level=RiskLevel.BORDERLINE,
        expected_triggers=["fumeur", "Tabagisme"],
    ),

    GoldenCase(
        id="negation-wrapped-verb",
        description="'ne ... pas' around the verb and 'jamais' before an auxiliary",
        patient_id=17,
        date_of_birth=date(1985, 2, 11),
        gender="Male",
        notes=[
            "Le patient ne fume pas.",
            "Il n'a jamais eu de vertiges. Cholestérol élevé.",
        ],
        expected_risk_level=RiskLevel.NONE,
        expected_triggers=["Cholestérol"],
        forbidden_triggers=["Fumeur", "Vertiges"],
    ),

    GoldenCase(
        id="edge-normal",
        description="'normal' is near 'Anormal' but is not a trigger",
        patient_id=13,
        date_of_birth=date(1990, 5, 5),
        gender="Female",
        notes=["Bilan complet, tout est normal."],
        expected_risk_level=RiskLevel.NONE,
        forbidden_triggers=["Anormal"],
    ),

    GoldenCase(
        id="edge-no-notes",
        description="Patient without notes",
        patient_id=14,
        date_of_birth=date(1960, 7, 1),
        gender="Male",
        notes=[],
        expected_risk_level=RiskLevel.NONE,
    ),

    GoldenCase(
        id="edge-blank-notes",
        description="Blank notes are skipped",
        patient_id=15,
        date_of_birth=date(1960, 7, 1),
        gender="Female",
        notes=["", "   \n  "],
        expected_risk_level=RiskLevel.NONE,
    ),
]


def get_all_golden_cases() -> list[GoldenCase]:
    """Return all golden cases for evaluation."""
    return SEED_CASES + BEHAVIOUR_CASES


def get_case_by_id(case_id: str) -> GoldenCase | None:
    """Retrieve a specific golden case by ID."""
    for case in get_all_golden_cases():
        if case.id == case_id:
            return case
    return None
