"""
Trigger Catalog - the closed vocabulary searched for in clinical notes.

Single responsibility: hold every static word list the engine relies on.
The search query, the negation filter and the aggregator all read from this
module, so a term or cue added here is picked up everywhere at once.

WHY A CLOSED VOCABULARY:
------------------------
Detecting "anything that looks like a risk factor" in free text is an
open-ended NLP problem. Restricting detection to twelve known concepts (plus
their spelling variants) turns it into a bounded multi-term search that can be
tested case by case.

A report lists the words found in the notes. Canonical names group those words
for diagnostics and for the canonical reporting mode.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TriggerCategory(str, Enum):
    """Clinical family a trigger belongs to."""

    BIOLOGICAL = "Biological"
    PHYSICAL = "Physical"
    HABIT = "Habit"
    STATE = "State"
    SYMPTOM = "Symptom"


@dataclass(frozen=True)
class TriggerTerm:
    """
    One canonical trigger concept.

    `label` is an English gloss for display; matching only uses
    `canonical_name` and `synonyms`.
    """

    canonical_name: str
    category: TriggerCategory
    synonyms: tuple[str, ...] = ()
    label: str = ""

    @property
    def variants(self) -> tuple[str, ...]:
        """Canonical name followed by every synonym."""
        return (self.canonical_name, *self.synonyms)


# ---------------------------------------------------------------------------
# TRIGGER TERMS
# ---------------------------------------------------------------------------

TRIGGER_CATALOG: tuple[TriggerTerm, ...] = (
    TriggerTerm(
        "Hémoglobine A1C",
        TriggerCategory.BIOLOGICAL,
        ("HbA1C", "Hémoglobine glyquée", "Hémoglobyne A1C", "Hémoglobyne glikée"),
        label="Hemoglobin A1C",
    ),
    TriggerTerm(
        "Microalbumine",
        TriggerCategory.BIOLOGICAL,
        ("Albumine urinaire", "Protéines urinaires", "Mikroalbumine", "Micralbumine"),
        label="Microalbumin",
    ),
    TriggerTerm(
        "Taille",
        TriggerCategory.PHYSICAL,
        ("Hauteur", "Stature", "Tayle", "Tail"),
        label="Height",
    ),
    TriggerTerm(
        "Poids",
        TriggerCategory.PHYSICAL,
        (
            "Masse corporelle", "Poid", "Poyds",
            "Surpoids", "Sur poids", "Excès de poids", "Obésité",
        ),
        label="Weight",
    ),
    TriggerTerm(
        "Fumeur",
        TriggerCategory.HABIT,
        ("Tabagisme", "Consommation de tabac", "Fumeure", "Fumer"),
        label="Smoker (male)",
    ),
    TriggerTerm(
        "Fumeuse",
        TriggerCategory.HABIT,
        ("Tabagisme féminin", "Consommatrice de tabac", "Fumeuze", "Fumeusses"),
        label="Smoker (female)",
    ),
    TriggerTerm(
        "Anormal",
        TriggerCategory.STATE,
        ("Irrégulier", "Pathologique", "Anormalle", "Anormale"),
        label="Abnormal",
    ),
    TriggerTerm(
        "Cholestérol",
        TriggerCategory.BIOLOGICAL,
        ("LDL", "HDL", "Triglycérides", "Cholesterole", "Colestérol", "Hypercholestérolémie"),
        label="Cholesterol",
    ),
    TriggerTerm(
        "Vertiges",
        TriggerCategory.SYMPTOM,
        ("Étourdissements", "Tête qui tourne", "Vertige", "Verstiges"),
        label="Dizziness",
    ),
    TriggerTerm(
        "Rechute",
        TriggerCategory.SYMPTOM,
        ("Récidive", "Retour des symptômes", "Réchute", "Rechutte"),
        label="Relapse",
    ),
    TriggerTerm(
        "Réaction",
        TriggerCategory.SYMPTOM,
        ("Réaction allergique", "Effet indésirable", "Réactionne", "Réaxion"),
        label="Reaction",
    ),
    TriggerTerm(
        "Anticorps",
        TriggerCategory.BIOLOGICAL,
        ("Immunoglobulines", "Réponse immunitaire", "Antycorps", "Antikorps"),
        label="Antibodies",
    ),
)


# ---------------------------------------------------------------------------
# HIGHLIGHTING
# ---------------------------------------------------------------------------

HIGHLIGHT_PRE = "«"
HIGHLIGHT_POST = "»"

# "normal" is within one edit of "anormal", so fuzzy search highlights it.
# Dropped before negation analysis; specific to the Anormal entry.
FALSE_POSITIVE_SPANS: frozenset[str] = frozenset({"normal", "normale", "normales", "normaux"})


# ---------------------------------------------------------------------------
# NEGATION VOCABULARY
# ---------------------------------------------------------------------------

# "..." stands for one or two intervening words ("ne présente pas").
NEGATION_CUES: tuple[str, ...] = (
    # Simple
    "aucun", "aucune", "sans", "jamais", "ni", "rien", "zéro", "nulle part",
    "pas de", "pas d'", "ne ... pas", "n' ... pas", "n'est pas", "n'est plus",
    "non", "non détecté", "non détectée", "non détectés", "non détectées",
    "exclu", "exclue", "absence de", "absence d'",
    # Compound
    "ne révèle pas", "ne présente pas", "ne contient pas", "ne montre pas",
    "ne souffre pas", "ne signale pas", "ne démontre pas", "ne trouve pas",
    "ne semble pas", "ne figure pas", "ne comporte pas", "ne dispose pas",
    "ne permet pas",
    # Indirect
    "aucune trace", "aucun signe", "aucune indication", "aucun élément",
    "aucun symptôme", "n'a aucun", "n'a pas été trouvé", "n'a pas été trouvée",
    "n'a pas été détecté", "n'a pas été détectée", "pas retrouvé", "pas retrouvée",
)

# Nouns that carry the negation in "aucune anomalie de l'Hémoglobine A1C".
CLINICAL_NEGATION_NOUNS: tuple[str, ...] = (
    "anomalie", "problème", "dysfonctionnement", "altération",
    "dégradation", "irrégularité", "défaut", "trouble",
)

PARTITIVE_ARTICLES: tuple[str, ...] = ("de la", "de l'", "de", "du", "des", "d'")

# Two-part negation split around the mention ("ne «fume» pas") or around an
# auxiliary ("n'a jamais eu de «vertiges»").
NEGATION_OPENERS: tuple[str, ...] = ("ne", "n'")
NEGATION_CLOSERS: tuple[str, ...] = ("pas", "plus", "jamais", "point", "guère", "rien")

# Words that end the negated clause: "ne tousse pas mais des «vertiges»".
CLAUSE_BREAKERS: tuple[str, ...] = ("mais", "et", "ou", "car", "donc", "puis", "or")


# ---------------------------------------------------------------------------
# ACCESSORS
# ---------------------------------------------------------------------------


def terms() -> list[TriggerTerm]:
    """Return the catalog in its fixed order."""
    return list(TRIGGER_CATALOG)


def canonical_names() -> list[str]:
    """Return the reportable names, in catalog order."""
    return [term.canonical_name for term in TRIGGER_CATALOG]


def search_terms(catalog: tuple[TriggerTerm, ...] | list[TriggerTerm] = TRIGGER_CATALOG) -> list[str]:
    """
    Flatten the catalog into the list of strings sent to the index.

    Order follows the catalog; case-insensitive duplicates are dropped.
    """
    seen: set[str] = set()
    result: list[str] = []
    for term in catalog:
        for variant in term.variants:
            key = variant.casefold()
            if key not in seen:
                seen.add(key)
                result.append(variant)
    return result


def get_term(name: str) -> TriggerTerm | None:
    """Look up a catalog entry by canonical name (case-insensitive)."""
    key = name.casefold()
    for term in TRIGGER_CATALOG:
        if term.canonical_name.casefold() == key:
            return term
    return None
