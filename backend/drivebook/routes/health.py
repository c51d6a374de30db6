# backend/drivebook/routes/health.py
"""
Health check endpoint.

Used by load balancers and uptime monitors; it only touches the database.
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..core.config import settings
from ..core.constants import API_VERSION
from ..database import describe_pool
from ..schemas.health import HealthCheckResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthCheckResponse)
def health_check(response: Response, db: Session = Depends(get_db)) -> HealthCheckResponse:
    """
    Basic health check endpoint.

    Returns:
        "healthy" when the database answers, "degraded" otherwise.
    """
    response.headers["Cache-Control"] = "no-store"
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        logger.error("Database health check failed: %s", e)
        db_ok = False

    return HealthCheckResponse(
        status="healthy" if db_ok else "degraded",
        version=API_VERSION,
        environment=settings.environment,
        checks={"database": db_ok},
        database_pool=describe_pool(),
    )
