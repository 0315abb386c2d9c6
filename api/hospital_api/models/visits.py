"""Pydantic models for visits (OMOP ``visit_occurrence`` rows)."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .common import CursorPage


# Outpatient Visit
DEFAULT_VISIT_CONCEPT_ID = 9201


class VisitType(str, Enum):
    """Visit setting."""

    OPD = "OPD"
    IPD = "IPD"
    ER = "ER"


class VisitCreate(BaseModel):
    """Model for creating a new visit."""

    person_id: int = Field(ge=1, description="Patient person ID")
    visit_concept_id: Optional[int] = Field(
        default=None,
        ge=1,
        description="OMOP visit concept; defaults to outpatient visit"
    )
    visit_type: VisitType = Field(description="Visit type")
    visit_start: datetime = Field(description="Visit start (ISO 8601)")
    visit_end: Optional[datetime] = Field(default=None, description="Visit end (ISO 8601)")
    department_id: Optional[int] = Field(default=None, ge=1)
    provider_id: Optional[UUID] = Field(default=None, description="Provider user ID")
    reason: Optional[str] = Field(default=None, max_length=2000)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "person_id": 123,
                "visit_type": "OPD",
                "visit_start": "2024-01-15T10:00:00Z",
                "visit_end": "2024-01-15T11:00:00Z",
                "department_id": 5,
                "reason": "Routine checkup"
            }
        }
    )


class Visit(BaseModel):
    """Complete visit model."""

    visit_occurrence_id: int
    person_id: int
    visit_concept_id: int
    visit_start: datetime
    visit_end: Optional[datetime] = None
    visit_type: VisitType
    department_id: Optional[int] = None
    provider_id: Optional[UUID] = None
    reason: Optional[str] = None
    visit_number: Optional[str] = Field(default=None, description="Human-readable number, V-YYYY-NNNNNN")
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "visit_occurrence_id": 987,
                "person_id": 123,
                "visit_concept_id": 9201,
                "visit_start": "2024-01-15T10:00:00Z",
                "visit_end": "2024-01-15T11:00:00Z",
                "visit_type": "OPD",
                "department_id": 5,
                "reason": "Routine checkup",
                "visit_number": "V-2024-000987",
                "created_at": "2024-01-15T10:00:00Z",
                "updated_at": "2024-01-15T10:00:00Z"
            }
        }
    )


class VisitListResponse(CursorPage[Visit]):
    """Response model for listing visits."""
