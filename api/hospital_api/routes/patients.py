"""Patients API endpoints."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Query, Request, Response

from ..models.patients import Patient, PatientListResponse
from ..pagination.dependencies import Pagination, set_link_header
from ..db.patients import get_patient, list_patients


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/patients",
    tags=["Patients"],
    responses={
        400: {"description": "Bad Request"},
        404: {"description": "Not Found"}
    }
)


@router.get(
    "",
    response_model=PatientListResponse,
    summary="List patients",
    description="Search patients by name or MRN with cursor-based pagination.",
    responses={
        200: {"description": "Patients retrieved successfully"}
    }
)
async def list_patients_endpoint(
    request: Request,
    response: Response,
    pagination: Pagination,
    search: Annotated[Optional[str], Query(max_length=200, description="Name or MRN fragment")] = None,
    gender_concept_id: Annotated[Optional[int], Query(description="OMOP gender concept")] = None
) -> PatientListResponse:
    """List patients ordered by person ID.

    Args:
        request: FastAPI request object
        response: FastAPI response object for adding headers
        pagination: Normalized limit, cursor and order
        search: Case-insensitive name or MRN fragment
        gender_concept_id: Gender concept filter

    Returns:
        Page of patients, with a Link header when more exist
    """
    logger.info(f"Listing patients (search={search!r}, limit={pagination.limit})")

    page = await list_patients(pagination, search=search, gender_concept_id=gender_concept_id)

    set_link_header(request, response, pagination, page.next_cursor)

    logger.info(f"Retrieved {len(page.items)} patients")
    return PatientListResponse.from_page(page)


@router.get(
    "/{person_id}",
    response_model=Patient,
    summary="Get a patient",
    responses={
        200: {"description": "Patient retrieved successfully"}
    }
)
async def get_patient_endpoint(person_id: int) -> Patient:
    """Get a specific patient by person ID.

    Raises:
        NotFoundError: If patient doesn't exist
    """
    logger.info(f"Getting patient {person_id}")
    return await get_patient(person_id)
