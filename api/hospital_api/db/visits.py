"""Database operations for visits."""

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional
from uuid import UUID

import asyncpg

from ..models.visits import DEFAULT_VISIT_CONCEPT_ID, Visit, VisitCreate, VisitType
from ..pagination import (
    Page, PaginationOptions, build_cursor_condition, build_order_clause,
    build_page, get_cursor_extractor
)
from ..errors.problem_details import (
    NotFoundError, ConflictError, BadRequestError, InternalServerError
)
from .connection import get_db_pool


logger = logging.getLogger(__name__)

VISIT_NUMBER_LOCK_KEY = 1000001

VISIT_COLUMNS = """
    visit_occurrence_id, person_id, visit_concept_id, visit_start, visit_end,
    visit_type, department_id, provider_id, reason, visit_number,
    created_at, updated_at
"""

CURSOR_COERCE = {
    "created_at": datetime.fromisoformat,
    "visit_occurrence_id": int,
}


def format_visit_number(year: int, sequence: int) -> str:
    """Format a visit number as ``V-YYYY-NNNNNN``."""
    return f"V-{year}-{sequence:06d}"


async def list_visits(
    pagination: PaginationOptions,
    person_id: Optional[int] = None,
    provider_id: Optional[UUID] = None,
    visit_type: Optional[VisitType] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None
) -> Page[Visit]:
    """List visits newest first (or oldest first with ``order=asc``).

    Rows are ordered by ``(created_at, visit_occurrence_id)`` so visits
    created in the same instant keep a stable position across pages.

    Args:
        pagination: Normalized pagination options
        person_id: Only visits of this patient
        provider_id: Only visits with this provider
        visit_type: Only visits of this type
        date_from: Visits starting at or after this time
        date_to: Visits ending at or before this time, or still open

    Returns:
        Page of visits

    Raises:
        InternalServerError: If database operation fails
    """
    pool = await get_db_pool()

    try:
        conditions: List[str] = []
        params: List[Any] = []

        if person_id is not None:
            params.append(person_id)
            conditions.append(f"person_id = ${len(params)}")

        if provider_id is not None:
            params.append(provider_id)
            conditions.append(f"provider_id = ${len(params)}")

        if visit_type is not None:
            params.append(VisitType(visit_type).value)
            conditions.append(f"visit_type = ${len(params)}")

        if date_from is not None:
            params.append(date_from)
            conditions.append(f"visit_start >= ${len(params)}")

        if date_to is not None:
            params.append(date_to)
            conditions.append(f"(visit_end IS NULL OR visit_end <= ${len(params)})")

        cursor_condition = build_cursor_condition(
            pagination.cursor,
            sort_field="created_at",
            param_index=len(params) + 1,
            direction=pagination.order,
            tie_breaker="visit_occurrence_id",
            coerce=CURSOR_COERCE
        )
        if cursor_condition:
            conditions.append(cursor_condition.condition)
            params.extend(cursor_condition.params)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        order_clause = build_order_clause(
            "created_at", pagination.order, tie_breaker="visit_occurrence_id"
        )

        params.append(pagination.limit + 1)
        query = f"""
            SELECT {VISIT_COLUMNS}
            FROM visit_occurrence
            {where_clause}
            {order_clause}
            LIMIT ${len(params)}
        """

        async with pool.acquire() as conn:
            rows = await conn.fetch(query, *params)

        page = build_page(rows, pagination.limit, get_cursor_extractor("visit"))
        visits = [Visit.model_validate(dict(row)) for row in page.items]

        logger.debug(f"Listed {len(visits)} visits (has_more={page.has_more})")
        return Page(items=visits, next_cursor=page.next_cursor, has_more=page.has_more)

    except asyncpg.PostgresError as e:
        logger.error(f"Database error listing visits: {e}")
        raise InternalServerError(f"Database error: {e}")
    except Exception as e:
        logger.error(f"Unexpected error listing visits: {e}")
        raise InternalServerError(f"Unexpected error: {e}")


async def get_visit(visit_id: int) -> Visit:
    """Get a visit by ID.

    Raises:
        NotFoundError: If visit doesn't exist
        InternalServerError: If database operation fails
    """
    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {VISIT_COLUMNS} FROM visit_occurrence WHERE visit_occurrence_id = $1",
                visit_id
            )

        if not row:
            raise NotFoundError(f"Visit {visit_id} not found")

        return Visit.model_validate(dict(row))

    except NotFoundError:
        raise
    except asyncpg.PostgresError as e:
        logger.error(f"Database error getting visit {visit_id}: {e}")
        raise InternalServerError(f"Database error: {e}")
    except Exception as e:
        logger.error(f"Unexpected error getting visit {visit_id}: {e}")
        raise InternalServerError(f"Unexpected error: {e}")


async def get_visit_by_number(visit_number: str) -> Visit:
    """Get a visit by its human-readable number.

    Raises:
        NotFoundError: If no visit has that number
        InternalServerError: If database operation fails
    """
    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {VISIT_COLUMNS} FROM visit_occurrence WHERE visit_number = $1",
                visit_number
            )

        if not row:
            raise NotFoundError(f"Visit '{visit_number}' not found")

        return Visit.model_validate(dict(row))

    except NotFoundError:
        raise
    except asyncpg.PostgresError as e:
        logger.error(f"Database error getting visit {visit_number}: {e}")
        raise InternalServerError(f"Database error: {e}")
    except Exception as e:
        logger.error(f"Unexpected error getting visit {visit_number}: {e}")
        raise InternalServerError(f"Unexpected error: {e}")


async def get_active_inpatient_visits(person_id: int) -> List[Visit]:
    """Get open inpatient visits for a patient, latest start first."""
    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {VISIT_COLUMNS}
                FROM visit_occurrence
                WHERE person_id = $1
                  AND visit_type = 'IPD'
                  AND visit_end IS NULL
                ORDER BY visit_start DESC
                """,
                person_id
            )

        return [Visit.model_validate(dict(row)) for row in rows]

    except asyncpg.PostgresError as e:
        logger.error(f"Database error getting active inpatient visits for person {person_id}: {e}")
        raise InternalServerError(f"Database error: {e}")
    except Exception as e:
        logger.error(f"Unexpected error getting active inpatient visits for person {person_id}: {e}")
        raise InternalServerError(f"Unexpected error: {e}")


async def has_overlapping_inpatient_visit(
    conn: asyncpg.Connection,
    person_id: int,
    visit_start: datetime,
    visit_end: Optional[datetime],
    exclude_visit_id: Optional[int] = None
) -> bool:
    """Check whether an inpatient visit for the patient overlaps the range.

    An open visit (no end) overlaps everything. A new visit without an end
    is treated as the single instant ``visit_start``.
    """
    params: List[Any] = [person_id, visit_start, visit_end or visit_start]
    query = """
        SELECT 1 FROM visit_occurrence
        WHERE person_id = $1
          AND visit_type = 'IPD'
          AND (visit_end IS NULL OR (visit_start <= $3 AND visit_end >= $2))
    """

    if exclude_visit_id is not None:
        params.append(exclude_visit_id)
        query += f" AND visit_occurrence_id <> ${len(params)}"

    query += " LIMIT 1"

    row = await conn.fetchrow(query, *params)
    return row is not None


async def _next_visit_number(conn: asyncpg.Connection) -> str:
    # Lock is released at the end of the surrounding transaction.
    await conn.execute("SELECT pg_advisory_xact_lock($1)", VISIT_NUMBER_LOCK_KEY)
    sequence = await conn.fetchval("SELECT nextval('seq_visit')")
    return format_visit_number(datetime.now(timezone.utc).year, sequence)


async def create_visit(visit_data: VisitCreate) -> Visit:
    """Create a new visit with a generated visit number.

    The overlap check, number generation and insert run in one transaction
    under an advisory lock.

    Args:
        visit_data: Visit creation data

    Returns:
        Created visit

    Raises:
        BadRequestError: If the visit ends before it starts
        NotFoundError: If the patient doesn't exist
        ConflictError: If an inpatient visit overlaps an existing one
        InternalServerError: If database operation fails
    """
    if visit_data.visit_end is not None and visit_data.visit_end < visit_data.visit_start:
        raise BadRequestError("Visit end date cannot be before start date")

    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            async with conn.transaction():
                visit_number = await _next_visit_number(conn)

                if visit_data.visit_type == VisitType.IPD and await has_overlapping_inpatient_visit(
                    conn,
                    visit_data.person_id,
                    visit_data.visit_start,
                    visit_data.visit_end
                ):
                    raise ConflictError(
                        "Patient already has an active inpatient visit. "
                        "Cannot create overlapping IPD visit."
                    )

                row = await conn.fetchrow(
                    f"""
                    INSERT INTO visit_occurrence (
                        person_id, visit_concept_id, visit_start, visit_end,
                        visit_type, department_id, provider_id, reason, visit_number
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                    RETURNING {VISIT_COLUMNS}
                    """,
                    visit_data.person_id,
                    visit_data.visit_concept_id or DEFAULT_VISIT_CONCEPT_ID,
                    visit_data.visit_start,
                    visit_data.visit_end,
                    visit_data.visit_type.value,
                    visit_data.department_id,
                    visit_data.provider_id,
                    visit_data.reason,
                    visit_number
                )

        if not row:
            raise InternalServerError("Failed to create visit")

        visit = Visit.model_validate(dict(row))
        logger.info(f"Created visit {visit.visit_occurrence_id} ({visit.visit_number}) for person {visit.person_id}")
        return visit

    except ConflictError:
        raise
    except InternalServerError:
        raise
    except asyncpg.ForeignKeyViolationError as e:
        logger.error(f"Foreign key violation creating visit: {e}")
        raise NotFoundError(f"Patient {visit_data.person_id} not found")
    except asyncpg.PostgresError as e:
        logger.error(f"Database error creating visit: {e}")
        raise InternalServerError(f"Database error: {e}")
    except Exception as e:
        logger.error(f"Unexpected error creating visit: {e}")
        raise InternalServerError(f"Unexpected error: {e}")
