"""Visits API endpoints."""

import logging
from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Query, Request, Response

from ..models.visits import Visit, VisitCreate, VisitListResponse, VisitType
from ..pagination.dependencies import Pagination, set_link_header
from ..db.visits import (
    create_visit, get_visit, get_visit_by_number,
    get_active_inpatient_visits, list_visits
)


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/visits",
    tags=["Visits"],
    responses={
        400: {"description": "Bad Request"},
        404: {"description": "Not Found"}
    }
)


@router.get(
    "",
    response_model=VisitListResponse,
    summary="List visits",
    description="List visits with cursor-based pagination, ordered by creation time.",
    responses={
        200: {"description": "Visits retrieved successfully"}
    }
)
async def list_visits_endpoint(
    request: Request,
    response: Response,
    pagination: Pagination,
    person_id: Annotated[Optional[int], Query(ge=1, description="Filter by patient")] = None,
    provider_id: Annotated[Optional[UUID], Query(description="Filter by provider")] = None,
    visit_type: Annotated[Optional[VisitType], Query(alias="type", description="Filter by visit type")] = None,
    date_from: Annotated[Optional[datetime], Query(description="Visits starting at or after")] = None,
    date_to: Annotated[Optional[datetime], Query(description="Visits ending at or before")] = None
) -> VisitListResponse:
    """List visits with seek-based pagination.

    Visits are sorted by ``created_at`` with ``visit_occurrence_id`` as a
    tie-breaker, so visits sharing a timestamp are neither repeated nor
    skipped between pages. Pass ``nextCursor`` back as ``cursor`` to continue.
    """
    logger.info(f"Listing visits (person_id={person_id}, type={visit_type}, limit={pagination.limit})")

    page = await list_visits(
        pagination,
        person_id=person_id,
        provider_id=provider_id,
        visit_type=visit_type,
        date_from=date_from,
        date_to=date_to
    )

    set_link_header(request, response, pagination, page.next_cursor)

    logger.info(f"Retrieved {len(page.items)} visits")
    return VisitListResponse.from_page(page)


@router.post(
    "",
    response_model=Visit,
    status_code=201,
    summary="Create a visit",
    description="Create a visit. Inpatient visits may not overlap another inpatient visit of the same patient.",
    responses={
        201: {"description": "Visit created successfully"},
        409: {"description": "Overlapping inpatient visit"}
    }
)
async def create_visit_endpoint(visit_data: VisitCreate) -> Visit:
    """Create a new visit and assign its visit number."""
    logger.info(f"Creating {visit_data.visit_type.value} visit for person {visit_data.person_id}")

    visit = await create_visit(visit_data)

    logger.info(f"Successfully created visit {visit.visit_number}")
    return visit


@router.get(
    "/visit-number/{visit_number}",
    response_model=Visit,
    summary="Get a visit by number",
    responses={
        200: {"description": "Visit retrieved successfully"}
    }
)
async def get_visit_by_number_endpoint(visit_number: str) -> Visit:
    logger.info(f"Getting visit by number {visit_number}")
    return await get_visit_by_number(visit_number)


@router.get(
    "/active-inpatient/{person_id}",
    response_model=List[Visit],
    summary="Get active inpatient visits",
    description="Open inpatient visits for a patient, latest start first."
)
async def get_active_inpatient_visits_endpoint(person_id: int) -> List[Visit]:
    logger.info(f"Getting active inpatient visits for person {person_id}")
    return await get_active_inpatient_visits(person_id)


@router.get(
    "/{visit_id}",
    response_model=Visit,
    summary="Get a visit",
    responses={
        200: {"description": "Visit retrieved successfully"}
    }
)
async def get_visit_endpoint(visit_id: int) -> Visit:
    """Get a specific visit by ID.

    Raises:
        NotFoundError: If visit doesn't exist
    """
    logger.info(f"Getting visit {visit_id}")
    return await get_visit(visit_id)
