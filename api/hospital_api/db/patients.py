"""Database operations for patients."""

import logging
from typing import Any, List, Optional

import asyncpg

from ..models.patients import Patient
from ..pagination import (
    Page, PaginationOptions, build_cursor_condition, build_order_clause,
    build_page, get_cursor_extractor
)
from ..errors.problem_details import NotFoundError, InternalServerError
from .connection import get_db_pool


logger = logging.getLogger(__name__)

PATIENT_COLUMNS = """
    person_id, user_id, first_name, last_name, gender_concept_id,
    year_of_birth, month_of_birth, day_of_birth, birth_datetime, mrn,
    contact_phone, contact_email, created_at, updated_at
"""


async def list_patients(
    pagination: PaginationOptions,
    search: Optional[str] = None,
    gender_concept_id: Optional[int] = None
) -> Page[Patient]:
    """List patients by ``person_id``, newest first by default.

    ``person_id`` is unique, so the cursor carries that single field.

    Args:
        pagination: Normalized pagination options
        search: Case-insensitive match on full name or MRN
        gender_concept_id: Only patients with this gender concept

    Returns:
        Page of patients

    Raises:
        InternalServerError: If database operation fails
    """
    pool = await get_db_pool()

    try:
        conditions: List[str] = []
        params: List[Any] = []

        if search:
            params.append(f"%{search.strip()}%")
            conditions.append(
                f"((first_name || ' ' || last_name) ILIKE ${len(params)} OR mrn ILIKE ${len(params)})"
            )

        if gender_concept_id is not None:
            params.append(gender_concept_id)
            conditions.append(f"gender_concept_id = ${len(params)}")

        cursor_condition = build_cursor_condition(
            pagination.cursor,
            sort_field="person_id",
            param_index=len(params) + 1,
            direction=pagination.order,
            tie_breaker="person_id",
            coerce={"person_id": int}
        )
        if cursor_condition:
            conditions.append(cursor_condition.condition)
            params.extend(cursor_condition.params)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        order_clause = build_order_clause("person_id", pagination.order, tie_breaker=None)

        params.append(pagination.limit + 1)
        query = f"""
            SELECT {PATIENT_COLUMNS}
            FROM person
            {where_clause}
            {order_clause}
            LIMIT ${len(params)}
        """

        async with pool.acquire() as conn:
            rows = await conn.fetch(query, *params)

        page = build_page(rows, pagination.limit, get_cursor_extractor("person_id"))
        patients = [Patient.model_validate(dict(row)) for row in page.items]

        logger.debug(f"Listed {len(patients)} patients (has_more={page.has_more})")
        return Page(items=patients, next_cursor=page.next_cursor, has_more=page.has_more)

    except asyncpg.PostgresError as e:
        logger.error(f"Database error listing patients: {e}")
        raise InternalServerError(f"Database error: {e}")
    except Exception as e:
        logger.error(f"Unexpected error listing patients: {e}")
        raise InternalServerError(f"Unexpected error: {e}")


async def get_patient(person_id: int) -> Patient:
    """Get a patient by person ID.

    Raises:
        NotFoundError: If patient doesn't exist
        InternalServerError: If database operation fails
    """
    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {PATIENT_COLUMNS} FROM person WHERE person_id = $1",
                person_id
            )

        if not row:
            raise NotFoundError(f"Patient {person_id} not found")

        return Patient.model_validate(dict(row))

    except NotFoundError:
        raise
    except asyncpg.PostgresError as e:
        logger.error(f"Database error getting patient {person_id}: {e}")
        raise InternalServerError(f"Database error: {e}")
    except Exception as e:
        logger.error(f"Unexpected error getting patient {person_id}: {e}")
        raise InternalServerError(f"Unexpected error: {e}")
