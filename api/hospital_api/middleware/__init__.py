"""HTTP middleware."""

from .request_logging import REQUEST_ID_HEADER, RequestLoggingMiddleware, get_request_id

__all__ = ["REQUEST_ID_HEADER", "RequestLoggingMiddleware", "get_request_id"]
