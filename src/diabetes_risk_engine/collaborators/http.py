"""
HTTP adapters for the patient and note services.

Both services sit behind the gateway and answer JSON. A 404 is an answer
("no such patient", "no notes"), anything else that is not a 2xx is a
CollaboratorError.
"""

from __future__ import annotations

import logging

import requests
from pydantic import ValidationError

from diabetes_risk_engine.config import EngineConfig
from diabetes_risk_engine.core.errors import CollaboratorError
from diabetes_risk_engine.schemas.records import NoteRecord, PatientRecord

logger = logging.getLogger(__name__)


class _JsonServiceClient:
    """GET-only JSON client shared by both adapters."""

    collaborator = "service"

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        if token:
            self._session.headers.update({"Authorization": f"Bearer {token}"})

    def close(self) -> None:
        self._session.close()

    def _get_json(self, path: str):
        """GET `path`; None on 404, decoded JSON otherwise."""
        url = f"{self.base_url}/{path}"
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise CollaboratorError(
                f"Request to {self.collaborator} failed: {e}",
                collaborator=self.collaborator,
                details={"url": url},
            ) from e

        if response.status_code == 404:
            return None
        if not response.ok:
            raise CollaboratorError(
                f"{self.collaborator} answered HTTP {response.status_code}",
                collaborator=self.collaborator,
                details={"url": url, "status": response.status_code},
            )
        try:
            return response.json()
        except ValueError as e:
            raise CollaboratorError(
                f"{self.collaborator} answered invalid JSON",
                collaborator=self.collaborator,
                details={"url": url},
            ) from e


class HttpPatientDirectory(_JsonServiceClient):
    """PatientDirectory over `GET {base_url}/{id}`."""

    collaborator = "patient-service"

    def get_patient(self, patient_id: int) -> PatientRecord | None:
        payload = self._get_json(str(patient_id))
        if payload is None:
            logger.info(f"Patient {patient_id} not found")
            return None
        try:
            return PatientRecord.model_validate(payload)
        except ValidationError as e:
            raise CollaboratorError(
                f"Invalid patient payload for patient {patient_id}",
                collaborator=self.collaborator,
                details={"errors": e.errors(include_url=False)},
            ) from e

    @classmethod
    def from_config(cls, config: EngineConfig, session: requests.Session | None = None) -> HttpPatientDirectory:
        return cls(config.patient_api_url, config.api_token, config.http_timeout, session)


class HttpNoteStore(_JsonServiceClient):
    """NoteStore over `GET {base_url}/patientid/{id}`."""

    collaborator = "note-service"

    def get_notes_by_patient_id(self, patient_id: int) -> list[NoteRecord]:
        payload = self._get_json(f"patientid/{patient_id}")
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise CollaboratorError(
                f"Expected a list of notes for patient {patient_id}",
                collaborator=self.collaborator,
                details={"type": type(payload).__name__},
            )
        try:
            return [NoteRecord.model_validate(item) for item in payload]
        except ValidationError as e:
            raise CollaboratorError(
                f"Invalid note payload for patient {patient_id}",
                collaborator=self.collaborator,
                details={"errors": e.errors(include_url=False)},
            ) from e

    @classmethod
    def from_config(cls, config: EngineConfig, session: requests.Session | None = None) -> HttpNoteStore:
        return cls(config.note_api_url, config.api_token, config.http_timeout, session)
