"""Pydantic models for document metadata."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .common import CursorPage


class Document(BaseModel):
    """Stored document metadata. File bytes live in object storage."""

    document_id: UUID
    owner_user_id: UUID
    patient_person_id: Optional[int] = None
    file_path: str = Field(description="Object storage key")
    file_name: Optional[str] = None
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None
    uploaded_by: Optional[UUID] = None
    uploaded_at: datetime
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DocumentListResponse(CursorPage[Document]):
    """Response model for listing documents."""
