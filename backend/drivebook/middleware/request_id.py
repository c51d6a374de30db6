"""
Request id middleware.

Reads ``X-Request-ID`` (or mints one), stores it in the request context so
log records carry it, and echoes it on the response.
"""

from typing import Callable
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.request_context import bind_request_id, unbind_request_id

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = bind_request_id(request_id)
        try:
            response = await call_next(request)
        finally:
            unbind_request_id(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
