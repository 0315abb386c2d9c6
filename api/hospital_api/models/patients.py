"""Pydantic models for patients (OMOP ``person`` rows)."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .common import CursorPage


class Patient(BaseModel):
    """Patient demographics."""

    person_id: int = Field(description="Person ID")
    user_id: Optional[UUID] = Field(default=None, description="Linked portal user, if any")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender_concept_id: int = Field(description="OMOP gender concept")
    year_of_birth: int
    month_of_birth: Optional[int] = None
    day_of_birth: Optional[int] = None
    birth_datetime: Optional[datetime] = None
    mrn: Optional[str] = Field(default=None, description="Medical record number")
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "person_id": 123,
                "first_name": "Jane",
                "last_name": "Doe",
                "gender_concept_id": 8532,
                "year_of_birth": 1985,
                "month_of_birth": 4,
                "day_of_birth": 12,
                "mrn": "MRN-2024-000123",
                "created_at": "2024-01-15T10:00:00Z",
                "updated_at": "2024-01-15T10:00:00Z"
            }
        }
    )


class PatientListResponse(CursorPage[Patient]):
    """Response model for listing patients."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "items": [],
                "nextCursor": "eyJwZXJzb25faWQiOjEyM30"
            }
        }
    )
