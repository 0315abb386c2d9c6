"""Pagination module for cursor-based pagination."""

from .cursor import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    CursorCondition,
    CursorData,
    CursorEncodingError,
    InvalidCursorError,
    Page,
    PaginationOptions,
    encode_cursor,
    decode_cursor,
    normalize_limit,
    build_cursor_condition,
    build_order_clause,
    build_page,
    parse_pagination_options,
    create_link_header
)
from .extractors import CURSOR_EXTRACTORS, get_cursor_extractor

__all__ = [
    "DEFAULT_LIMIT",
    "MAX_LIMIT",
    "CursorCondition",
    "CursorData",
    "CursorEncodingError",
    "InvalidCursorError",
    "Page",
    "PaginationOptions",
    "encode_cursor",
    "decode_cursor",
    "normalize_limit",
    "build_cursor_condition",
    "build_order_clause",
    "build_page",
    "parse_pagination_options",
    "create_link_header",
    "CURSOR_EXTRACTORS",
    "get_cursor_extractor"
]
