"""Document metadata API endpoints."""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Query, Request, Response

from ..models.documents import Document, DocumentListResponse
from ..pagination.dependencies import Pagination, set_link_header
from ..db.documents import get_document, list_documents, soft_delete_document


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/documents",
    tags=["Documents"],
    responses={
        400: {"description": "Bad Request"},
        404: {"description": "Not Found"}
    }
)


@router.get(
    "",
    response_model=DocumentListResponse,
    summary="List documents",
    description="List document metadata with cursor-based pagination, newest upload first.",
    responses={
        200: {"description": "Documents retrieved successfully"}
    }
)
async def list_documents_endpoint(
    request: Request,
    response: Response,
    pagination: Pagination,
    owner_user_id: Annotated[Optional[UUID], Query(description="Filter by owner")] = None,
    patient_person_id: Annotated[Optional[int], Query(ge=1, description="Filter by patient")] = None,
    include_deleted: Annotated[bool, Query(description="Include soft-deleted documents")] = False
) -> DocumentListResponse:
    """List documents sorted by ``uploaded_at`` with ``document_id`` as tie-breaker."""
    logger.info(f"Listing documents (owner={owner_user_id}, patient={patient_person_id}, limit={pagination.limit})")

    page = await list_documents(
        pagination,
        owner_user_id=owner_user_id,
        patient_person_id=patient_person_id,
        include_deleted=include_deleted
    )

    set_link_header(request, response, pagination, page.next_cursor)

    logger.info(f"Retrieved {len(page.items)} documents")
    return DocumentListResponse.from_page(page)


@router.get(
    "/{document_id}",
    response_model=Document,
    summary="Get a document",
    responses={
        200: {"description": "Document retrieved successfully"}
    }
)
async def get_document_endpoint(document_id: UUID) -> Document:
    logger.info(f"Getting document {document_id}")
    return await get_document(document_id)


@router.delete(
    "/{document_id}",
    status_code=204,
    summary="Delete a document",
    description="Soft-delete a document. The stored file is kept.",
    responses={
        204: {"description": "Document deleted successfully"}
    }
)
async def delete_document_endpoint(document_id: UUID) -> Response:
    """Soft-delete a document.

    Raises:
        NotFoundError: If document doesn't exist or was already deleted
    """
    logger.info(f"Deleting document {document_id}")

    await soft_delete_document(document_id)

    logger.info(f"Successfully deleted document {document_id}")
    return Response(status_code=204)
