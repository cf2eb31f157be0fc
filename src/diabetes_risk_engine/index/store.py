"""
Note index implementations.

Pattern: Protocol → Production impls → Test double → Factory

This module contains:
1. NoteIndexConfig - Configuration dataclass
2. ElasticsearchNoteIndex - Elasticsearch over its REST API (production)
3. PgNoteIndex - PostgreSQL table, highlighting done in Python
4. InMemoryNoteIndex - In-memory index (testing/development)
5. get_note_index() - Factory function

Every implementation honours the same visibility rule: a document indexed
after the last refresh() is not returned by search_triggers(). The report
pipeline always refreshes before it queries.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from urllib.parse import quote

import requests

from diabetes_risk_engine.config import EngineConfig, get_config
from diabetes_risk_engine.core.errors import IndexUnavailableError, SearchBackendError
from diabetes_risk_engine.core.protocols import SearchHit
from diabetes_risk_engine.index.document import IndexedNote
from diabetes_risk_engine.index.query import (
    DEFAULT_FRAGMENT_SIZE,
    DEFAULT_MAX_HITS,
    TEXT_FIELD,
    build_delete_query,
    build_trigger_query,
    index_settings,
)
from diabetes_risk_engine.matching.highlights import highlight_note

# Optional: Only import psycopg if available (for local dev without postgres)
try:
    import psycopg

    PSYCOPG_AVAILABLE = True
    PSYCOPG_ERRORS: tuple[type[Exception], ...] = (psycopg.Error,)
except ImportError:
    PSYCOPG_AVAILABLE = False
    PSYCOPG_ERRORS = ()

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------------------------


@dataclass
class NoteIndexConfig:
    """Configuration for the note index backends."""

    elasticsearch_url: str = "http://localhost:9200"
    index_name: str = "medical_notes"
    connection_string: str = "postgresql://localhost/risk_engine"
    timeout: float = 10.0
    fragment_size: int = DEFAULT_FRAGMENT_SIZE
    max_hits: int = DEFAULT_MAX_HITS

    @classmethod
    def from_engine_config(cls, config: EngineConfig) -> NoteIndexConfig:
        return cls(
            elasticsearch_url=config.elasticsearch_url.rstrip("/"),
            index_name=config.index_name,
            connection_string=config.database_url,
            timeout=config.http_timeout,
        )


# ---------------------------------------------------------------------------
# ELASTICSEARCH INDEX (Production)
# ---------------------------------------------------------------------------


class ElasticsearchNoteIndex:
    """
    Elasticsearch index driven through its REST API.

    The HTTP session is INJECTED when given, created on connect() otherwise,
    so tests can hand in a mock session and assert on the exact requests.
    """

    def __init__(self, config: NoteIndexConfig, session: requests.Session | None = None):
        self.config = config
        self._session = session

    def connect(self) -> None:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({"Content-Type": "application/json"})

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def _request(
        self,
        method: str,
        path: str,
        error_cls: type[IndexUnavailableError] | type[SearchBackendError] = IndexUnavailableError,
        **kwargs,
    ) -> requests.Response:
        if self._session is None:
            self.connect()

        url = f"{self.config.elasticsearch_url}/{path}"
        try:
            return self._session.request(method, url, timeout=self.config.timeout, **kwargs)
        except requests.RequestException as e:
            raise error_cls(
                f"Elasticsearch request failed: {method} {path}",
                details={"reason": str(e)},
            ) from e

    @staticmethod
    def _reason(response: requests.Response) -> str:
        try:
            error = response.json().get("error")
        except ValueError:
            return response.text[:200]
        if isinstance(error, dict):
            return str(error.get("reason") or error.get("type"))
        return str(error)

    def ensure_index(self) -> None:
        """Create the index with its mapping if it does not exist yet."""
        index = self.config.index_name
        exists = self._request("HEAD", index)
        if exists.status_code == 200:
            return
        if exists.status_code != 404:
            raise IndexUnavailableError(
                f"Cannot check index '{index}'",
                details={"status": exists.status_code},
            )

        created = self._request("PUT", index, json=index_settings())
        if created.ok:
            logger.info(f"Created note index '{index}'")
            return
        # Another request created it between HEAD and PUT.
        if "resource_already_exists" in created.text:
            return
        raise IndexUnavailableError(
            f"Failed to create index '{index}': {self._reason(created)}",
            details={"status": created.status_code},
        )

    def delete_by_patient(self, patient_id: int) -> int:
        index = self.config.index_name
        response = self._request(
            "POST",
            f"{index}/_delete_by_query",
            params={"refresh": "true", "conflicts": "proceed"},
            json=build_delete_query(patient_id),
        )
        if response.status_code == 404:
            logger.warning(f"Index '{index}' does not exist, nothing to delete for patient {patient_id}")
            return 0
        if not response.ok:
            raise IndexUnavailableError(
                f"Failed to delete notes of patient {patient_id}: {self._reason(response)}",
                details={"status": response.status_code, "patient_id": patient_id},
            )
        deleted = int(response.json().get("deleted", 0))
        logger.debug(f"Deleted {deleted} indexed note(s) for patient {patient_id}")
        return deleted

    def index_note(self, doc: IndexedNote) -> None:
        response = self._request(
            "PUT",
            f"{self.config.index_name}/_doc/{quote(doc.note_id, safe='')}",
            json=doc.to_dict(),
        )
        if not response.ok:
            raise IndexUnavailableError(
                f"Failed to index note {doc.note_id}: {self._reason(response)}",
                details={"status": response.status_code, "note_id": doc.note_id},
            )

    def refresh(self) -> None:
        response = self._request("POST", f"{self.config.index_name}/_refresh")
        if not response.ok:
            raise IndexUnavailableError(
                f"Failed to refresh index '{self.config.index_name}': {self._reason(response)}",
                details={"status": response.status_code},
            )

    def search_triggers(self, patient_id: int, terms: list[str]) -> list[SearchHit]:
        body = build_trigger_query(
            patient_id,
            terms,
            fragment_size=self.config.fragment_size,
            max_hits=self.config.max_hits,
        )
        response = self._request(
            "POST",
            f"{self.config.index_name}/_search",
            error_cls=SearchBackendError,
            json=body,
        )
        if response.status_code == 404:
            logger.warning(f"Index '{self.config.index_name}' does not exist, no hits for patient {patient_id}")
            return []
        if not response.ok:
            raise SearchBackendError(
                f"Trigger search failed for patient {patient_id}: {self._reason(response)}",
                details={"status": response.status_code, "patient_id": patient_id},
            )

        try:
            raw_hits = response.json()["hits"]["hits"]
        except (ValueError, KeyError, TypeError) as e:
            raise SearchBackendError(
                "Malformed search response",
                details={"patient_id": patient_id, "reason": str(e)},
            ) from e

        hits: list[SearchHit] = []
        for raw in raw_hits or []:
            source = raw.get("_source") or {}
            highlight = (raw.get("highlight") or {}).get(TEXT_FIELD, [])
            hits.append(
                SearchHit(
                    note_id=str(source.get("noteId", raw.get("_id"))),
                    patient_id=int(source.get("patientId", patient_id)),
                    text=source.get(TEXT_FIELD) or "",
                    highlight_fragments=list(highlight),
                )
            )
        return hits


# ---------------------------------------------------------------------------
# POSTGRES INDEX
# ---------------------------------------------------------------------------


class PgNoteIndex:
    """
    PostgreSQL table holding the note projection.

    SQL does the patient filter and the ordering; fuzzy highlighting runs in
    Python with the same matcher as the in-memory index. Autocommit makes
    every write visible immediately, so refresh() has nothing to do.
    """

    def __init__(self, config: NoteIndexConfig, connection=None):
        self.config = config
        self._conn = connection
        self._schema_ready = False

    def connect(self) -> None:
        """Establish database connection."""
        if not PSYCOPG_AVAILABLE:
            raise ImportError(
                "psycopg not available. Install with: pip install psycopg[binary]"
            )
        try:
            self._conn = psycopg.connect(self.config.connection_string, autocommit=True)
        except psycopg.Error as e:
            raise IndexUnavailableError(
                "Cannot connect to PostgreSQL note index",
                details={"reason": str(e)},
            ) from e

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def _execute(
        self,
        sql: str,
        params: tuple | None = None,
        error_cls: type[IndexUnavailableError] | type[SearchBackendError] = IndexUnavailableError,
    ):
        if not self._conn:
            self.connect()
        try:
            return self._conn.execute(sql, params)
        except PSYCOPG_ERRORS as e:
            raise error_cls(
                f"PostgreSQL note index query failed: {e}",
                details={"table": self.config.index_name},
            ) from e

    def ensure_index(self) -> None:
        """Create the notes table and its patient index."""
        if self._schema_ready:
            return
        table = self.config.index_name
        self._execute(
            f"""
            CREATE TABLE IF NOT EXISTS {table} (
                note_id TEXT PRIMARY KEY,
                patient_id INTEGER NOT NULL,
                note TEXT NOT NULL,
                note_date TIMESTAMPTZ
            )
            """
        )
        self._execute(f"CREATE INDEX IF NOT EXISTS {table}_patient_idx ON {table} (patient_id)")
        self._schema_ready = True

    def delete_by_patient(self, patient_id: int) -> int:
        self.ensure_index()
        cursor = self._execute(
            f"DELETE FROM {self.config.index_name} WHERE patient_id = %s",
            (patient_id,),
        )
        return max(int(cursor.rowcount or 0), 0)

    def index_note(self, doc: IndexedNote) -> None:
        self.ensure_index()
        self._execute(
            f"""
            INSERT INTO {self.config.index_name} (note_id, patient_id, note, note_date)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (note_id) DO UPDATE SET
                patient_id = EXCLUDED.patient_id,
                note = EXCLUDED.note,
                note_date = EXCLUDED.note_date
            """,
            (doc.note_id, doc.patient_id, doc.text, doc.date),
        )

    def refresh(self) -> None:
        """No-op: autocommit writes are visible at once."""
        pass

    def search_triggers(self, patient_id: int, terms: list[str]) -> list[SearchHit]:
        rows = self._execute(
            f"""
            SELECT note_id, patient_id, note
            FROM {self.config.index_name}
            WHERE patient_id = %s
            ORDER BY note_date NULLS FIRST, note_id
            """,
            (patient_id,),
            error_cls=SearchBackendError,
        ).fetchall()

        hits = []
        for note_id, row_patient_id, text in rows:
            fragments = highlight_note(text, terms)
            if fragments:
                hits.append(SearchHit(note_id, row_patient_id, text, fragments))
        return hits


# ---------------------------------------------------------------------------
# IN-MEMORY INDEX (Testing/Development)
# ---------------------------------------------------------------------------


class InMemoryNoteIndex:
    """
    In-memory note index for development/testing.

    Implements the same interface as ElasticsearchNoteIndex, including the
    refresh rule: indexed documents stay pending until refresh().
    """

    def __init__(self):
        self._visible: dict[str, IndexedNote] = {}
        self._pending: dict[str, IndexedNote] = {}

    def connect(self) -> None:
        """No-op for in-memory index."""
        pass

    def close(self) -> None:
        """No-op for in-memory index."""
        pass

    def ensure_index(self) -> None:
        """No-op for in-memory index."""
        pass

    def delete_by_patient(self, patient_id: int) -> int:
        removed = set()
        for store in (self._visible, self._pending):
            for note_id in [k for k, doc in store.items() if doc.patient_id == patient_id]:
                del store[note_id]
                removed.add(note_id)
        return len(removed)

    def index_note(self, doc: IndexedNote) -> None:
        self._pending[doc.note_id] = dataclasses.replace(doc)

    def refresh(self) -> None:
        self._visible.update(self._pending)
        self._pending.clear()

    def documents(self, patient_id: int | None = None) -> list[IndexedNote]:
        """Searchable documents, optionally for one patient, in search order."""
        docs = [d for d in self._visible.values() if patient_id is None or d.patient_id == patient_id]
        return sorted(docs, key=IndexedNote.sort_key)

    def search_triggers(self, patient_id: int, terms: list[str]) -> list[SearchHit]:
        hits = []
        for doc in self.documents(patient_id):
            fragments = highlight_note(doc.text, terms)
            if fragments:
                hits.append(SearchHit(doc.note_id, doc.patient_id, doc.text, fragments))
        return hits


# ---------------------------------------------------------------------------
# FACTORY FUNCTION
# ---------------------------------------------------------------------------


def get_note_index(
    backend: str | None = None,
    config: NoteIndexConfig | None = None,
) -> ElasticsearchNoteIndex | PgNoteIndex | InMemoryNoteIndex:
    """
    Factory function to get the configured note index.

    Args:
        backend: "memory", "elasticsearch" or "postgres" (default: INDEX_BACKEND)
        config: Index configuration (derived from the engine config if not provided)

    Returns:
        NoteIndex implementation
    """
    if backend is None or config is None:
        engine_config = get_config()
        backend = backend or engine_config.index_backend
        config = config or NoteIndexConfig.from_engine_config(engine_config)
    backend = backend.lower()

    if backend == "elasticsearch":
        return ElasticsearchNoteIndex(config)
    if backend == "postgres":
        return PgNoteIndex(config)
    if backend == "memory":
        return InMemoryNoteIndex()
    raise ValueError(f"Unknown index backend: {backend}")
