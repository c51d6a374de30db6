"""Health check response schemas."""

from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel, Field

from ..core.constants import API_TITLE


class HealthCheckResponse(BaseModel):
    """Standard health check response."""

    status: str = Field(description="Service health status", pattern="^(healthy|degraded)$")
    service: str = Field(default=API_TITLE, description="Service name")
    version: str = Field(description="API version")
    environment: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    checks: Dict[str, bool] = Field(description="Individual component health checks")
    database_pool: Dict[str, Any] = Field(default_factory=dict)
