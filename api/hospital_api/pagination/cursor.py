"""Cursor-based pagination utilities for the Hospital Records API.

Cursors are opaque base64url tokens wrapping a compact JSON object that holds
only the sort-key values of the last row of a page. Listing queries resume
strictly after that row using a keyset comparison, so pages stay stable while
rows are inserted or deleted between requests.
"""

import base64
import json
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Sequence, TypeVar, Union
from urllib.parse import urlencode
from uuid import UUID

from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)

T = TypeVar("T")

CursorValue = Union[str, int, float, bool, None]
CursorData = Dict[str, CursorValue]
CursorExtractor = Callable[[Any], CursorData]

DEFAULT_LIMIT = 20
MAX_LIMIT = 100
MIN_LIMIT = 1

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_SCALAR_TYPES = (str, int, float, bool, type(None))
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class InvalidCursorError(ValueError):
    """Raised when a cursor token is malformed or has been tampered with."""


class CursorEncodingError(ValueError):
    """Raised when cursor data cannot be serialized into a token."""


class PaginationOptions(BaseModel):
    """Normalized pagination options for a list request."""

    limit: int = Field(default=DEFAULT_LIMIT, ge=MIN_LIMIT, description="Number of items per page")
    cursor: Optional[str] = Field(default=None, description="Opaque cursor from a previous page")
    order: str = Field(default="desc", pattern="^(asc|desc)$", description="Sort order")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results plus the cursor to continue from."""

    items: List[T]
    next_cursor: Optional[str] = None
    has_more: bool = False


@dataclass(frozen=True)
class CursorCondition:
    """Keyset predicate built from a cursor.

    ``condition`` is empty when the scan should start from the beginning.
    """

    condition: str = ""
    params: List[Any] = field(default_factory=list)
    next_param_index: int = 1
    fields: tuple = ()
    direction: str = "desc"

    def __bool__(self) -> bool:
        return bool(self.condition)


def _to_scalar(key: str, value: Any) -> CursorValue:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, float) and not math.isfinite(value):
        raise CursorEncodingError(f"Cursor field '{key}' is not a finite number")
    if isinstance(value, _SCALAR_TYPES):
        return value
    raise CursorEncodingError(
        f"Cursor field '{key}' has non-scalar type {type(value).__name__}"
    )


def encode_cursor(data: Mapping[str, Any]) -> str:
    """Encode cursor data into an opaque, URL-safe token.

    Args:
        data: Sort-key values of the last row on a page

    Returns:
        Base64url encoded cursor string without padding

    Raises:
        CursorEncodingError: If a value is not a scalar or cannot be serialized
    """
    if not isinstance(data, Mapping):
        raise CursorEncodingError(f"Cursor data must be a mapping, got {type(data).__name__}")

    payload = {str(key): _to_scalar(str(key), value) for key, value in data.items()}

    try:
        cursor_json = json.dumps(payload, sort_keys=True, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise CursorEncodingError(f"Failed to encode cursor: {e}") from e

    encoded = base64.urlsafe_b64encode(cursor_json.encode("utf-8")).decode("ascii")
    return encoded.rstrip("=")


def decode_cursor(cursor: str) -> CursorData:
    """Decode a cursor token produced by :func:`encode_cursor`.

    Args:
        cursor: Base64url encoded cursor string, padded or not

    Returns:
        Decoded cursor data

    Raises:
        InvalidCursorError: If the cursor is empty, malformed or not a flat JSON object
    """
    if not isinstance(cursor, str) or not cursor.strip():
        raise InvalidCursorError("Empty cursor provided")

    token = cursor.strip()
    token += "=" * (-len(token) % 4)

    try:
        cursor_bytes = base64.b64decode(token.encode("ascii"), altchars=b"-_", validate=True)
        cursor_data = json.loads(cursor_bytes.decode("utf-8"))
    except (ValueError, TypeError, RecursionError) as e:
        raise InvalidCursorError(f"Invalid cursor format: {e}") from e

    if not isinstance(cursor_data, dict):
        raise InvalidCursorError("Invalid cursor format: expected a JSON object")

    for key, value in cursor_data.items():
        if not isinstance(value, _SCALAR_TYPES):
            raise InvalidCursorError(f"Invalid cursor format: field '{key}' is not a scalar")
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidCursorError(f"Invalid cursor format: field '{key}' is not a finite number")

    return cursor_data


def normalize_limit(
    limit: Optional[int] = None,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> int:
    """Clamp a requested page size into ``[1, max_limit]``.

    Missing, zero and negative values fall back to ``default_limit``.
    """
    if not limit or limit < MIN_LIMIT:
        return min(default_limit, max_limit)

    return min(limit, max_limit)


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name or ""):
        raise ValueError(f"Invalid column name for cursor pagination: {name!r}")
    return name


def _check_direction(direction: str) -> str:
    normalized = (direction or "").lower()
    if normalized not in ("asc", "desc"):
        raise ValueError(f"Sort direction must be 'asc' or 'desc', got {direction!r}")
    return normalized


def build_cursor_condition(
    cursor: Optional[str] = None,
    sort_field: str = "created_at",
    param_index: int = 1,
    direction: str = "desc",
    tie_breaker: str = "id",
    coerce: Optional[Mapping[str, Callable[[Any], Any]]] = None,
) -> CursorCondition:
    """Build the WHERE fragment that resumes a scan after a cursor.

    With a tie-breaker value in the cursor the fragment is a row comparison,
    e.g. ``(created_at, id) < ($1, $2)``, so rows sharing a ``created_at`` are
    neither skipped nor repeated. Without one it compares ``sort_field`` alone.

    Args:
        cursor: Cursor token from the client, if any
        sort_field: Primary sort column
        param_index: Number of the first free ``$n`` placeholder
        direction: 'asc' or 'desc', matching the query's ORDER BY
        tie_breaker: Unique column used to break ties on ``sort_field``
        coerce: Optional converters applied to decoded values before binding

    Returns:
        The condition; empty when the cursor is missing, invalid or stale
    """
    sort_field = _check_identifier(sort_field)
    tie_breaker = _check_identifier(tie_breaker)
    direction = _check_direction(direction)
    empty = CursorCondition(next_param_index=param_index, direction=direction)

    if not cursor:
        return empty

    try:
        cursor_data = decode_cursor(cursor)
    except InvalidCursorError as e:
        logger.warning(f"Invalid cursor provided, starting from first page: {e}")
        return empty

    if cursor_data.get(sort_field) is None:
        logger.warning(f"Cursor has no value for '{sort_field}', starting from first page")
        return empty

    use_tie_breaker = tie_breaker != sort_field and cursor_data.get(tie_breaker) is not None
    fields = (sort_field, tie_breaker) if use_tie_breaker else (sort_field,)

    converters = coerce or {}
    try:
        params = [
            converters[name](cursor_data[name]) if name in converters else cursor_data[name]
            for name in fields
        ]
    except Exception as e:
        logger.warning(f"Cursor values do not match column types, starting from first page: {e}")
        return empty

    operator = "<" if direction == "desc" else ">"
    placeholders = [f"${param_index + offset}" for offset in range(len(fields))]

    if use_tie_breaker:
        condition = f"({', '.join(fields)}) {operator} ({', '.join(placeholders)})"
    else:
        condition = f"{sort_field} {operator} {placeholders[0]}"

    return CursorCondition(
        condition=condition,
        params=params,
        next_param_index=param_index + len(fields),
        fields=fields,
        direction=direction,
    )


def build_order_clause(
    sort_field: str = "created_at",
    direction: str = "desc",
    tie_breaker: Optional[str] = "id",
) -> str:
    """Build the ORDER BY clause matching :func:`build_cursor_condition`."""
    sort_field = _check_identifier(sort_field)
    direction = _check_direction(direction).upper()

    columns = [f"{sort_field} {direction}"]
    if tie_breaker and tie_breaker != sort_field:
        columns.append(f"{_check_identifier(tie_breaker)} {direction}")

    return "ORDER BY " + ", ".join(columns)


def build_page(
    rows: Sequence[T],
    limit: int,
    cursor_extractor: Optional[CursorExtractor] = None,
) -> Page[T]:
    """Assemble a page from a query that fetched ``limit + 1`` rows.

    The extra row only signals that more data exists. The next cursor is taken
    from the last row actually returned.

    Args:
        rows: Rows in query order, at most ``limit + 1`` of them
        limit: Requested page size
        cursor_extractor: Returns the sort-key fields of one row

    Returns:
        Page with items, next cursor and has_more flag
    """
    has_more = len(rows) > limit
    items = list(rows[:limit]) if has_more else list(rows)

    next_cursor = None
    if has_more and items and cursor_extractor is not None:
        next_cursor = encode_cursor(cursor_extractor(items[-1]))

    return Page(items=items, next_cursor=next_cursor, has_more=has_more)


def parse_pagination_options(
    query: Mapping[str, Any],
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
    strict: bool = False,
) -> PaginationOptions:
    """Normalize raw ``limit``/``cursor``/``order`` query parameters.

    Raises:
        InvalidCursorError: Only in strict mode, for a cursor that does not decode
    """
    raw_limit = query.get("limit")
    limit: Optional[int]
    if isinstance(raw_limit, str):
        # leading digits only, so "12.5" reads as 12
        match = _LEADING_INT.match(raw_limit)
        limit = int(match.group(1)) if match else None
    else:
        limit = raw_limit

    cursor = query.get("cursor") or None
    if strict and cursor:
        decode_cursor(cursor)

    return PaginationOptions(
        limit=normalize_limit(limit, default_limit=default_limit, max_limit=max_limit),
        cursor=cursor,
        order=(query.get("order") or "desc").lower(),
    )


def create_link_header(
    base_url: str,
    params: Dict[str, Any],
    next_cursor: Optional[str] = None,
) -> Optional[str]:
    """Create Link header for pagination as per RFC 8288.

    Args:
        base_url: Base URL for the resource
        params: Current query parameters, without the cursor
        next_cursor: Cursor for next page

    Returns:
        Link header value or None if there is no next page
    """
    if not next_cursor:
        return None

    query = {key: value for key, value in params.items() if value is not None}
    query["cursor"] = next_cursor
    return f'<{base_url}?{urlencode(query)}>; rel="next"'
