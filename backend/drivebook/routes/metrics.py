"""
Prometheus metrics endpoint.

Public, following standard Prometheus practice; it only exposes request and
operation counters, never business data.
"""

from fastapi import APIRouter, Response

from ..monitoring.prometheus_metrics import prometheus_metrics

router = APIRouter(tags=["metrics"])


@router.get("/metrics", include_in_schema=False, response_class=Response, response_model=None)
def get_prometheus_metrics() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )
