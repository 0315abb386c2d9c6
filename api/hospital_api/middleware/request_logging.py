"""Request id and access logging middleware."""

import logging
import time
import uuid
from contextvars import ContextVar
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response


logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    """Return the id of the request being handled, if any."""
    return _request_id.get()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log one access line per request.

    An incoming ``X-Request-ID`` is reused; otherwise a UUID4 is generated.
    The id is stored on ``request.state`` for error responses and echoed
    back on the response.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = (request.headers.get(REQUEST_ID_HEADER) or "").strip() or str(uuid.uuid4())
        request.state.request_id = request_id

        token = _request_id.set(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.error(
                f"{request.method} {request.url.path} failed after {duration_ms:.1f}ms "
                f"[request_id={request_id}]"
            )
            raise
        finally:
            _request_id.reset(token)

        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} "
            f"{duration_ms:.1f}ms [request_id={request_id}]"
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
