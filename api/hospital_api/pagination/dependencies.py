"""FastAPI helpers for pagination query parameters and response headers."""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Query, Request, Response

from ..config import get_settings
from ..errors.problem_details import BadRequestError
from .cursor import (
    InvalidCursorError, PaginationOptions, create_link_header, parse_pagination_options
)


logger = logging.getLogger(__name__)


async def get_pagination_options(
    limit: Annotated[Optional[int], Query(description="Items per page, clamped to the configured maximum")] = None,
    cursor: Annotated[Optional[str], Query(description="Opaque cursor returned as nextCursor by the previous page")] = None,
    order: Annotated[str, Query(pattern="^(asc|desc)$", description="Sort order")] = "desc",
) -> PaginationOptions:
    """Normalize pagination query parameters using the configured bounds.

    Out-of-range limits are clamped. A cursor that does not decode restarts
    pagination, unless strict cursors are enabled, in which case it is a 400.
    """
    settings = get_settings()

    try:
        return parse_pagination_options(
            {"limit": limit, "cursor": cursor, "order": order},
            default_limit=settings.default_page_size,
            max_limit=settings.max_page_size,
            strict=settings.strict_cursors,
        )
    except InvalidCursorError as e:
        logger.info(f"Rejecting invalid cursor in strict mode: {e}")
        raise BadRequestError("Invalid pagination cursor", parameter="cursor")


Pagination = Annotated[PaginationOptions, Depends(get_pagination_options)]


def set_link_header(
    request: Request,
    response: Response,
    options: PaginationOptions,
    next_cursor: Optional[str]
) -> None:
    """Add an RFC 8288 ``Link: rel="next"`` header when another page exists.

    Filters from the current request are carried over; ``limit`` is the
    normalized value and ``cursor`` is replaced.
    """
    params = {key: value for key, value in request.query_params.items() if key != "cursor"}
    params["limit"] = str(options.limit)
    params["order"] = options.order

    base_url = str(request.url).split("?")[0]
    link_header = create_link_header(base_url, params, next_cursor)
    if link_header:
        response.headers["Link"] = link_header
