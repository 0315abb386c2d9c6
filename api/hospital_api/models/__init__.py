"""Data models for the Hospital Records API."""

from .common import CursorPage
from .patients import Patient, PatientListResponse
from .visits import Visit, VisitCreate, VisitListResponse, VisitType
from .documents import Document, DocumentListResponse

__all__ = [
    "CursorPage",
    "Patient",
    "PatientListResponse",
    "Visit",
    "VisitCreate",
    "VisitListResponse",
    "VisitType",
    "Document",
    "DocumentListResponse"
]
