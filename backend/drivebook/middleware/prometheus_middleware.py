"""HTTP request metrics: latency, status and in-flight gauge per route shape."""

import re
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..monitoring.prometheus_metrics import prometheus_metrics

_ULID_SEGMENT = re.compile(r"^[0-9A-HJKMNP-TV-Z]{26}$")

UNMEASURED_PATHS = frozenset({"/metrics"})


def normalize_path(raw_path: str) -> str:
    """Collapse ULIDs and numbers in a path so label cardinality stays bounded."""
    return "/".join(
        ":id" if segment.isdigit() or _ULID_SEGMENT.match(segment) else segment
        for segment in raw_path.split("/")
    )


class PrometheusMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in UNMEASURED_PATHS:
            return await call_next(request)

        method, path = request.method, normalize_path(request.url.path)
        prometheus_metrics.track_http_request_start(method, path)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            prometheus_metrics.track_http_request_end(method, path)

        prometheus_metrics.record_http_request(
            method=method,
            endpoint=path,
            duration=time.perf_counter() - started,
            status_code=response.status_code,
        )
        return response
