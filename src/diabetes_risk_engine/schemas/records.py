"""
Input records owned by external services.

The patient and note services speak camelCase JSON; these models accept
either the wire names or the Python field names, and ignore fields the engine
does not use.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PatientRecord(BaseModel):
    """Demographics needed to classify a patient."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    date_of_birth: date = Field(alias="dateOfBirth")
    gender: str | None = None
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def _drop_time(cls, value):
        # The patient API serialises DateTime values ("1980-04-12T00:00:00").
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and "T" in value:
            return value.split("T", 1)[0]
        return value


class NoteRecord(BaseModel):
    """A clinical note, read-only for the engine."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    patient_id: int = Field(alias="patientId")
    text: str = Field(default="", alias="note")
    date: datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_string(cls, value):
        return str(value) if value is not None else value

    @field_validator("text", mode="before")
    @classmethod
    def _null_text(cls, value):
        return "" if value is None else value

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()
