"""
Index module - the searchable projection of patient notes.

USAGE:
------
from diabetes_risk_engine.index import NoteIndexSync, TriggerSearch, get_note_index

index = get_note_index()          # backend from INDEX_BACKEND
NoteIndexSync(index).sync(patient_id, notes)
hits = TriggerSearch(index).search(patient_id)
"""

from diabetes_risk_engine.index.document import IndexedNote
from diabetes_risk_engine.index.query import build_delete_query, build_trigger_query, index_settings
from diabetes_risk_engine.index.search import TriggerSearch, query_terms
from diabetes_risk_engine.index.store import (
    PSYCOPG_AVAILABLE,
    ElasticsearchNoteIndex,
    InMemoryNoteIndex,
    NoteIndexConfig,
    PgNoteIndex,
    get_note_index,
)
from diabetes_risk_engine.index.sync import NoteIndexSync

__all__ = [
    # Documents and queries
    "IndexedNote",
    "index_settings",
    "build_trigger_query",
    "build_delete_query",
    # Backends
    "NoteIndexConfig",
    "ElasticsearchNoteIndex",
    "PgNoteIndex",
    "InMemoryNoteIndex",
    "PSYCOPG_AVAILABLE",
    "get_note_index",
    # Services
    "NoteIndexSync",
    "TriggerSearch",
    "query_terms",
]
