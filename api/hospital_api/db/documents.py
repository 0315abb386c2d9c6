"""Database operations for document metadata."""

import logging
from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

import asyncpg

from ..models.documents import Document
from ..pagination import (
    Page, PaginationOptions, build_cursor_condition, build_order_clause,
    build_page, get_cursor_extractor
)
from ..errors.problem_details import NotFoundError, InternalServerError
from .connection import get_db_pool


logger = logging.getLogger(__name__)

DOCUMENT_COLUMNS = """
    document_id, owner_user_id, patient_person_id, file_path, file_name,
    content_type, size_bytes, uploaded_by, uploaded_at, deleted_at
"""

CURSOR_COERCE = {
    "uploaded_at": datetime.fromisoformat,
    "document_id": UUID,
}


async def list_documents(
    pagination: PaginationOptions,
    owner_user_id: Optional[UUID] = None,
    patient_person_id: Optional[int] = None,
    include_deleted: bool = False
) -> Page[Document]:
    """List documents by upload time, newest first by default.

    Args:
        pagination: Normalized pagination options
        owner_user_id: Only documents owned by this user
        patient_person_id: Only documents attached to this patient
        include_deleted: Include soft-deleted documents

    Returns:
        Page of documents

    Raises:
        InternalServerError: If database operation fails
    """
    pool = await get_db_pool()

    try:
        conditions: List[str] = []
        params: List[Any] = []

        if not include_deleted:
            conditions.append("deleted_at IS NULL")

        if owner_user_id is not None:
            params.append(owner_user_id)
            conditions.append(f"owner_user_id = ${len(params)}")

        if patient_person_id is not None:
            params.append(patient_person_id)
            conditions.append(f"patient_person_id = ${len(params)}")

        cursor_condition = build_cursor_condition(
            pagination.cursor,
            sort_field="uploaded_at",
            param_index=len(params) + 1,
            direction=pagination.order,
            tie_breaker="document_id",
            coerce=CURSOR_COERCE
        )
        if cursor_condition:
            conditions.append(cursor_condition.condition)
            params.extend(cursor_condition.params)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        order_clause = build_order_clause("uploaded_at", pagination.order, tie_breaker="document_id")

        params.append(pagination.limit + 1)
        query = f"""
            SELECT {DOCUMENT_COLUMNS}
            FROM document
            {where_clause}
            {order_clause}
            LIMIT ${len(params)}
        """

        async with pool.acquire() as conn:
            rows = await conn.fetch(query, *params)

        page = build_page(rows, pagination.limit, get_cursor_extractor("uploaded_at"))
        documents = [Document.model_validate(dict(row)) for row in page.items]

        logger.debug(f"Listed {len(documents)} documents (has_more={page.has_more})")
        return Page(items=documents, next_cursor=page.next_cursor, has_more=page.has_more)

    except asyncpg.PostgresError as e:
        logger.error(f"Database error listing documents: {e}")
        raise InternalServerError(f"Database error: {e}")
    except Exception as e:
        logger.error(f"Unexpected error listing documents: {e}")
        raise InternalServerError(f"Unexpected error: {e}")


async def get_document(document_id: UUID) -> Document:
    """Get a document that has not been deleted.

    Raises:
        NotFoundError: If document doesn't exist or was deleted
        InternalServerError: If database operation fails
    """
    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {DOCUMENT_COLUMNS}
                FROM document
                WHERE document_id = $1 AND deleted_at IS NULL
                """,
                document_id
            )

        if not row:
            raise NotFoundError(f"Document {document_id} not found")

        return Document.model_validate(dict(row))

    except NotFoundError:
        raise
    except asyncpg.PostgresError as e:
        logger.error(f"Database error getting document {document_id}: {e}")
        raise InternalServerError(f"Database error: {e}")
    except Exception as e:
        logger.error(f"Unexpected error getting document {document_id}: {e}")
        raise InternalServerError(f"Unexpected error: {e}")


async def soft_delete_document(document_id: UUID) -> None:
    """Mark a document as deleted.

    Raises:
        NotFoundError: If document doesn't exist or was already deleted
        InternalServerError: If database operation fails
    """
    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            result = await conn.execute(
                """
                UPDATE document
                SET deleted_at = now()
                WHERE document_id = $1 AND deleted_at IS NULL
                """,
                document_id
            )

        # asyncpg returns e.g. "UPDATE 1"
        if result.split()[-1] == "0":
            raise NotFoundError(f"Document {document_id} not found")

        logger.info(f"Soft-deleted document {document_id}")

    except NotFoundError:
        raise
    except asyncpg.PostgresError as e:
        logger.error(f"Database error deleting document {document_id}: {e}")
        raise InternalServerError(f"Database error: {e}")
    except Exception as e:
        logger.error(f"Unexpected error deleting document {document_id}: {e}")
        raise InternalServerError(f"Unexpected error: {e}")
