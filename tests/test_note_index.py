"""
Unit Tests for the note index backends

Tests the three NoteIndex implementations without a running cluster or
database: the Elasticsearch index gets a mocked requests session, the
PostgreSQL index a mocked psycopg connection.

PATTERNS:
---------
1. Mock the transport, assert on the exact requests/SQL sent
2. Error mapping: transport failures become IndexUnavailableError or
   SearchBackendError, never raw library exceptions
3. Refresh visibility tested on the in-memory index
"""

from unittest.mock import MagicMock, call, patch

import pytest
import requests

from diabetes_risk_engine.config import reset_config
from diabetes_risk_engine.core.errors import IndexUnavailableError, SearchBackendError
from diabetes_risk_engine.core.protocols import NoteIndex, SearchHit
from diabetes_risk_engine.index.document import IndexedNote
from diabetes_risk_engine.index.query import (
    build_delete_query,
    build_trigger_query,
    index_settings,
    term_clause,
)
from diabetes_risk_engine.index.store import (
    PSYCOPG_AVAILABLE,
    ElasticsearchNoteIndex,
    InMemoryNoteIndex,
    NoteIndexConfig,
    PgNoteIndex,
    get_note_index,
)


# ---------------------------------------------------------------------------
# FIXTURES
# ---------------------------------------------------------------------------


@pytest.fixture
def index_config() -> NoteIndexConfig:
    return NoteIndexConfig(elasticsearch_url="http://es:9200", index_name="medical_notes", timeout=5.0)


@pytest.fixture
def mock_session():
    return MagicMock()


@pytest.fixture
def mock_connection():
    """Create mock psycopg connection."""
    conn = MagicMock()
    conn.execute.return_value = MagicMock()
    return conn


def _response(status: int = 200, payload=None, text: str = ""):
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    response.text = text
    response.json.return_value = payload if payload is not None else {}
    return response


def _doc(note_id: str = "n1", patient_id: int = 3, text: str = "Taux d'HbA1C élevé.") -> IndexedNote:
    return IndexedNote(note_id=note_id, patient_id=patient_id, text=text)


# ---------------------------------------------------------------------------
# QUERY BODIES
# ---------------------------------------------------------------------------


class TestQueryBodies:
    """Test the Elasticsearch request bodies."""

    def test_single_word_is_fuzzy_match(self):
        assert term_clause("Poids") == {"match": {"note": {"query": "Poids", "fuzziness": "AUTO"}}}

    def test_multi_word_is_span_near(self):
        clause = term_clause("Consommation de tabac")
        span = clause["span_near"]
        assert span["slop"] == 0
        assert span["in_order"] is True
        values = [c["span_multi"]["match"]["fuzzy"]["note"]["value"] for c in span["clauses"]]
        assert values == ["consommation", "de", "tabac"]

    def test_blank_term_has_no_clause(self):
        assert term_clause("  ") is None

    def test_trigger_query_filters_on_patient(self):
        body = build_trigger_query(3, ["Poids", "Vertiges"])
        assert body["query"]["bool"]["filter"] == {"term": {"patientId": 3}}
        should = body["query"]["bool"]["must"]["bool"]["should"]
        assert len(should) == 2

    def test_trigger_query_highlights_with_markers(self):
        body = build_trigger_query(3, ["Poids"])
        assert body["highlight"]["pre_tags"] == ["«"]
        assert body["highlight"]["post_tags"] == ["»"]
        assert "note" in body["highlight"]["fields"]

    def test_trigger_query_is_sorted(self):
        body = build_trigger_query(3, ["Poids"])
        assert [list(s)[0] for s in body["sort"]] == ["date", "noteId"]

    def test_trigger_query_requires_terms(self):
        with pytest.raises(ValueError):
            build_trigger_query(3, [])

    def test_delete_query(self):
        assert build_delete_query(7) == {"query": {"term": {"patientId": 7}}}

    def test_index_settings_use_elision(self):
        settings = index_settings()
        assert "french_elision" in settings["settings"]["analysis"]["analyzer"]["note_text"]["filter"]
        assert settings["mappings"]["properties"]["patientId"] == {"type": "integer"}

    def test_document_body(self):
        assert _doc().to_dict() == {
            "noteId": "n1",
            "patientId": 3,
            "note": "Taux d'HbA1C élevé.",
            "date": None,
        }


# ---------------------------------------------------------------------------
# IN-MEMORY INDEX
# ---------------------------------------------------------------------------


class TestInMemoryNoteIndex:
    """Test the in-memory index, including refresh visibility."""

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryNoteIndex(), NoteIndex)

    def test_not_searchable_before_refresh(self):
        index = InMemoryNoteIndex()
        index.index_note(_doc())

        assert index.search_triggers(3, ["HbA1C"]) == []

        index.refresh()
        (hit,) = index.search_triggers(3, ["HbA1C"])
        assert hit.note_id == "n1"
        assert hit.highlight_fragments == ["Taux d'«HbA1C» élevé."]

    def test_search_is_restricted_to_patient(self):
        index = InMemoryNoteIndex()
        index.index_note(_doc("n1", 3))
        index.index_note(_doc("n2", 4))
        index.refresh()

        assert [h.note_id for h in index.search_triggers(4, ["HbA1C"])] == ["n2"]

    def test_notes_without_match_are_not_returned(self):
        index = InMemoryNoteIndex()
        index.index_note(_doc("n1", 3, "Rien à signaler."))
        index.refresh()

        assert index.search_triggers(3, ["HbA1C"]) == []

    def test_delete_by_patient(self):
        index = InMemoryNoteIndex()
        index.index_note(_doc("n1", 3))
        index.refresh()
        index.index_note(_doc("n2", 3))
        index.index_note(_doc("n3", 4))

        assert index.delete_by_patient(3) == 2
        index.refresh()
        assert [d.note_id for d in index.documents()] == ["n3"]

    def test_delete_unknown_patient_is_noop(self):
        assert InMemoryNoteIndex().delete_by_patient(99) == 0

    def test_reindex_replaces_document(self):
        index = InMemoryNoteIndex()
        index.index_note(_doc("n1", 3, "Ancien texte."))
        index.refresh()
        index.index_note(_doc("n1", 3, "Nouveau texte."))
        index.refresh()

        assert [d.text for d in index.documents(3)] == ["Nouveau texte."]


# ---------------------------------------------------------------------------
# ELASTICSEARCH INDEX (MOCKED SESSION)
# ---------------------------------------------------------------------------


class TestElasticsearchNoteIndex:
    """Test ElasticsearchNoteIndex against a mocked requests session."""

    def test_ensure_index_existing(self, index_config, mock_session):
        mock_session.request.return_value = _response(200)
        ElasticsearchNoteIndex(index_config, mock_session).ensure_index()

        mock_session.request.assert_called_once_with("HEAD", "http://es:9200/medical_notes", timeout=5.0)

    def test_ensure_index_creates_missing(self, index_config, mock_session):
        mock_session.request.side_effect = [_response(404), _response(200)]
        ElasticsearchNoteIndex(index_config, mock_session).ensure_index()

        assert mock_session.request.call_args_list[1] == call(
            "PUT", "http://es:9200/medical_notes", timeout=5.0, json=index_settings()
        )

    def test_ensure_index_tolerates_concurrent_creation(self, index_config, mock_session):
        mock_session.request.side_effect = [
            _response(404),
            _response(400, text='{"error":{"type":"resource_already_exists_exception"}}'),
        ]
        ElasticsearchNoteIndex(index_config, mock_session).ensure_index()

    def test_delete_by_patient(self, index_config, mock_session):
        mock_session.request.return_value = _response(200, {"deleted": 2})

        deleted = ElasticsearchNoteIndex(index_config, mock_session).delete_by_patient(3)

        assert deleted == 2
        mock_session.request.assert_called_once_with(
            "POST",
            "http://es:9200/medical_notes/_delete_by_query",
            timeout=5.0,
            params={"refresh": "true", "conflicts": "proceed"},
            json=build_delete_query(3),
        )

    def test_delete_on_missing_index_is_noop(self, index_config, mock_session):
        mock_session.request.return_value = _response(404)
        assert ElasticsearchNoteIndex(index_config, mock_session).delete_by_patient(3) == 0

    def test_delete_failure_raises(self, index_config, mock_session):
        mock_session.request.return_value = _response(500, {"error": {"reason": "shard failure"}})

        with pytest.raises(IndexUnavailableError, match="shard failure"):
            ElasticsearchNoteIndex(index_config, mock_session).delete_by_patient(3)

    def test_connection_error_is_index_unavailable(self, index_config, mock_session):
        mock_session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(IndexUnavailableError) as exc_info:
            ElasticsearchNoteIndex(index_config, mock_session).refresh()
        assert exc_info.value.code == "INDEX_UNAVAILABLE"

    def test_index_note(self, index_config, mock_session):
        mock_session.request.return_value = _response(201)

        ElasticsearchNoteIndex(index_config, mock_session).index_note(_doc("n/1"))

        mock_session.request.assert_called_once_with(
            "PUT", "http://es:9200/medical_notes/_doc/n%2F1", timeout=5.0, json=_doc("n/1").to_dict()
        )

    def test_refresh(self, index_config, mock_session):
        mock_session.request.return_value = _response(200)
        ElasticsearchNoteIndex(index_config, mock_session).refresh()

        mock_session.request.assert_called_once_with("POST", "http://es:9200/medical_notes/_refresh", timeout=5.0)

    def test_search_triggers(self, index_config, mock_session):
        mock_session.request.return_value = _response(200, {
            "hits": {"hits": [
                {
                    "_id": "n1",
                    "_source": {"noteId": "n1", "patientId": 3, "note": "Taux d'HbA1C élevé."},
                    "highlight": {"note": ["Taux d'«HbA1C» élevé."]},
                },
            ]},
        })

        hits = ElasticsearchNoteIndex(index_config, mock_session).search_triggers(3, ["HbA1C"])

        assert hits == [SearchHit("n1", 3, "Taux d'HbA1C élevé.", ["Taux d'«HbA1C» élevé."])]
        _, kwargs = mock_session.request.call_args
        assert kwargs["json"] == build_trigger_query(3, ["HbA1C"])

    def test_search_without_highlight(self, index_config, mock_session):
        mock_session.request.return_value = _response(200, {
            "hits": {"hits": [{"_id": "n1", "_source": {"patientId": 3, "note": "x"}}]},
        })

        (hit,) = ElasticsearchNoteIndex(index_config, mock_session).search_triggers(3, ["HbA1C"])
        assert hit.note_id == "n1"
        assert hit.highlight_fragments == []

    def test_search_zero_hits(self, index_config, mock_session):
        mock_session.request.return_value = _response(200, {"hits": {"hits": []}})
        assert ElasticsearchNoteIndex(index_config, mock_session).search_triggers(3, ["HbA1C"]) == []

    def test_search_missing_index_is_empty(self, index_config, mock_session):
        mock_session.request.return_value = _response(404)
        assert ElasticsearchNoteIndex(index_config, mock_session).search_triggers(3, ["HbA1C"]) == []

    def test_malformed_response_raises(self, index_config, mock_session):
        mock_session.request.return_value = _response(200, {"took": 3})

        with pytest.raises(SearchBackendError, match="Malformed"):
            ElasticsearchNoteIndex(index_config, mock_session).search_triggers(3, ["HbA1C"])

    def test_search_http_error_raises(self, index_config, mock_session):
        mock_session.request.return_value = _response(400, {"error": {"reason": "parse error"}})

        with pytest.raises(SearchBackendError, match="parse error"):
            ElasticsearchNoteIndex(index_config, mock_session).search_triggers(3, ["HbA1C"])

    def test_search_connection_error_raises(self, index_config, mock_session):
        mock_session.request.side_effect = requests.Timeout("slow")

        with pytest.raises(SearchBackendError):
            ElasticsearchNoteIndex(index_config, mock_session).search_triggers(3, ["HbA1C"])

    def test_close(self, index_config, mock_session):
        index = ElasticsearchNoteIndex(index_config, mock_session)
        index.close()

        mock_session.close.assert_called_once()
        assert index._session is None


# ---------------------------------------------------------------------------
# POSTGRES INDEX (MOCKED CONNECTION)
# ---------------------------------------------------------------------------


class TestPgNoteIndex:
    """Test PgNoteIndex with a mocked database."""

    def test_ensure_index_creates_table_once(self, index_config, mock_connection):
        index = PgNoteIndex(index_config, mock_connection)

        index.ensure_index()
        index.ensure_index()

        sql = [c.args[0] for c in mock_connection.execute.call_args_list]
        assert len(sql) == 2
        assert "CREATE TABLE IF NOT EXISTS medical_notes" in sql[0]
        assert "CREATE INDEX IF NOT EXISTS" in sql[1]

    def test_delete_by_patient(self, index_config, mock_connection):
        mock_connection.execute.return_value = MagicMock(rowcount=2)

        assert PgNoteIndex(index_config, mock_connection).delete_by_patient(3) == 2
        last = mock_connection.execute.call_args
        assert "DELETE FROM medical_notes" in last.args[0]
        assert last.args[1] == (3,)

    def test_index_note_upserts(self, index_config, mock_connection):
        PgNoteIndex(index_config, mock_connection).index_note(_doc())

        last = mock_connection.execute.call_args
        assert "ON CONFLICT (note_id) DO UPDATE" in last.args[0]
        assert last.args[1] == ("n1", 3, "Taux d'HbA1C élevé.", None)

    def test_refresh_is_noop(self, index_config, mock_connection):
        PgNoteIndex(index_config, mock_connection).refresh()
        mock_connection.execute.assert_not_called()

    def test_search_highlights_in_python(self, index_config, mock_connection):
        mock_connection.execute.return_value.fetchall.return_value = [
            ("n1", 3, "Taux d'HbA1C élevé."),
            ("n2", 3, "Rien à signaler."),
        ]

        hits = PgNoteIndex(index_config, mock_connection).search_triggers(3, ["HbA1C"])

        assert hits == [SearchHit("n1", 3, "Taux d'HbA1C élevé.", ["Taux d'«HbA1C» élevé."])]
        assert "ORDER BY note_date NULLS FIRST, note_id" in mock_connection.execute.call_args.args[0]

    @pytest.mark.skipif(not PSYCOPG_AVAILABLE, reason="psycopg not installed")
    def test_database_error_is_index_unavailable(self, index_config, mock_connection):
        import psycopg

        mock_connection.execute.side_effect = psycopg.OperationalError("server closed the connection")

        with pytest.raises(IndexUnavailableError):
            PgNoteIndex(index_config, mock_connection).delete_by_patient(3)

    @pytest.mark.skipif(not PSYCOPG_AVAILABLE, reason="psycopg not installed")
    def test_search_error_is_search_backend_error(self, index_config, mock_connection):
        import psycopg

        mock_connection.execute.side_effect = psycopg.errors.UndefinedTable("no table")

        with pytest.raises(SearchBackendError):
            PgNoteIndex(index_config, mock_connection).search_triggers(3, ["HbA1C"])

    @pytest.mark.skipif(not PSYCOPG_AVAILABLE, reason="psycopg not installed")
    def test_connect(self, index_config, mock_connection):
        index = PgNoteIndex(index_config)

        with patch("diabetes_risk_engine.index.store.psycopg") as mock_psycopg:
            mock_psycopg.connect.return_value = mock_connection
            index.connect()

        mock_psycopg.connect.assert_called_once_with(index_config.connection_string, autocommit=True)
        assert index._conn is mock_connection

    def test_connect_without_psycopg(self, index_config):
        with patch("diabetes_risk_engine.index.store.PSYCOPG_AVAILABLE", False):
            with pytest.raises(ImportError, match="psycopg"):
                PgNoteIndex(index_config).connect()

    def test_close_connection(self, index_config, mock_connection):
        index = PgNoteIndex(index_config, mock_connection)
        index.close()

        mock_connection.close.assert_called_once()
        assert index._conn is None


# ---------------------------------------------------------------------------
# FACTORY
# ---------------------------------------------------------------------------


class TestGetNoteIndex:
    """Test the backend factory."""

    @pytest.fixture(autouse=True)
    def clean_config(self):
        reset_config()
        yield
        reset_config()

    def test_explicit_backends(self, index_config):
        assert isinstance(get_note_index("memory", index_config), InMemoryNoteIndex)
        assert isinstance(get_note_index("elasticsearch", index_config), ElasticsearchNoteIndex)
        assert isinstance(get_note_index("postgres", index_config), PgNoteIndex)

    def test_backend_from_environment(self, monkeypatch):
        monkeypatch.setenv("INDEX_BACKEND", "elasticsearch")
        monkeypatch.setenv("ELASTICSEARCH_URL", "http://search:9200/")

        index = get_note_index()

        assert isinstance(index, ElasticsearchNoteIndex)
        assert index.config.elasticsearch_url == "http://search:9200"

    def test_unknown_backend(self, index_config):
        with pytest.raises(ValueError):
            get_note_index("solr", index_config)
