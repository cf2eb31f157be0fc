"""
Analysis module - negation detection and trigger aggregation.

Both components are pure: they read highlighted fragments and return values,
with no I/O and no shared state.
"""

from diabetes_risk_engine.analysis.negation import NegationFilter, is_negated, normalize_text
from diabetes_risk_engine.analysis.aggregator import CatalogResolver, Mention, TriggerAggregator

__all__ = [
    "NegationFilter",
    "is_negated",
    "normalize_text",
    "CatalogResolver",
    "Mention",
    "TriggerAggregator",
]
