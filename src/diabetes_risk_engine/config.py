"""
Engine Configuration

Loads backend locations and runtime settings from environment variables.
"""

import os
from dataclasses import dataclass

INDEX_BACKENDS = ("memory", "elasticsearch", "postgres")


@dataclass
class EngineConfig:
    """Configuration for the risk engine.

    Environment Variables:
        INDEX_BACKEND: Note index backend - memory, elasticsearch or postgres (default: memory)
        ELASTICSEARCH_URL: Elasticsearch base URL (default: http://localhost:9200)
        NOTE_INDEX_NAME: Index/table holding the note projection (default: medical_notes)
        DATABASE_URL: PostgreSQL connection string (default: postgresql://localhost/risk_engine)
        PATIENT_API_URL: Patient service endpoint (default: http://gateway:5000/patients)
        NOTE_API_URL: Note service endpoint (default: http://gateway:5000/notes)
        API_TOKEN: Bearer token forwarded to the patient/note services (optional)
        HTTP_TIMEOUT_SECONDS: Timeout for every outbound HTTP call (default: 10)
        LOG_LEVEL: Logging level for the CLI (default: INFO)
    """

    index_backend: str = "memory"
    elasticsearch_url: str = "http://localhost:9200"
    index_name: str = "medical_notes"
    database_url: str = "postgresql://localhost/risk_engine"
    patient_api_url: str = "http://gateway:5000/patients"
    note_api_url: str = "http://gateway:5000/notes"
    api_token: str | None = None
    http_timeout: float = 10.0
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.index_backend not in INDEX_BACKENDS:
            raise ValueError(
                f"Unknown index backend '{self.index_backend}', expected one of {', '.join(INDEX_BACKENDS)}"
            )

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Load config from environment variables."""
        return cls(
            index_backend=os.environ.get("INDEX_BACKEND", "memory").strip().lower(),
            elasticsearch_url=os.environ.get("ELASTICSEARCH_URL", "http://localhost:9200"),
            index_name=os.environ.get("NOTE_INDEX_NAME", "medical_notes"),
            database_url=os.environ.get("DATABASE_URL", "postgresql://localhost/risk_engine"),
            patient_api_url=os.environ.get("PATIENT_API_URL", "http://gateway:5000/patients"),
            note_api_url=os.environ.get("NOTE_API_URL", "http://gateway:5000/notes"),
            api_token=os.environ.get("API_TOKEN") or None,
            http_timeout=float(os.environ.get("HTTP_TIMEOUT_SECONDS", "10")),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
        )


# Global config singleton
_config: EngineConfig | None = None


def get_config() -> EngineConfig:
    """Get the global engine config (lazy-loaded from env)."""
    global _config
    if _config is None:
        _config = EngineConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset config (useful for testing)."""
    global _config
    _config = None
