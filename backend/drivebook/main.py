# backend/drivebook/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import models  # noqa: F401  (registers tables on Base.metadata)
from .core.config import assert_env, is_running_tests, settings
from .core.constants import API_DESCRIPTION, API_PREFIX, API_TITLE, API_VERSION, BRAND_NAME
from .core.request_context import install_request_id_filter
from .database import Base, engine
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .middleware.request_id import REQUEST_ID_HEADER, RequestIdMiddleware
from .routes import health, metrics
from .routes.v1 import (
    admin_instructors as admin_instructors_v1,
    appointments as appointments_v1,
    instructors as instructors_v1,
    profiles as profiles_v1,
    slots as slots_v1,
    uploads as uploads_v1,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
)
install_request_id_filter()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info("%s API starting up...", BRAND_NAME)
    logger.info("Environment: %s", settings.environment)
    assert_env()

    if is_running_tests():
        logger.info("Running under pytest (test mode active)")

    if settings.auto_create_tables:
        logger.info("AUTO_CREATE_TABLES is on; creating missing tables")
        Base.metadata.create_all(bind=engine)

    yield

    logger.info("%s API shutting down...", BRAND_NAME)
    engine.dispose()


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

# Register unified error envelope handlers
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)
logger.info("CORS allow_origins=%s", settings.cors_origins)

app.add_middleware(PrometheusMiddleware)
# Added last so it wraps everything else and every log line carries the id
app.add_middleware(RequestIdMiddleware)

api_v1 = APIRouter(prefix=API_PREFIX)
api_v1.include_router(profiles_v1.router, prefix="/profiles")
api_v1.include_router(instructors_v1.router, prefix="/instructors")
api_v1.include_router(slots_v1.router, prefix="/slots")
api_v1.include_router(appointments_v1.router, prefix="/appointments")
api_v1.include_router(admin_instructors_v1.router, prefix="/admin/instructors")
api_v1.include_router(uploads_v1.router, prefix="/uploads")

app.include_router(api_v1)
app.include_router(health.router)
app.include_router(metrics.router)


@app.get("/")
def read_root() -> dict[str, str]:
    """Root endpoint - API information."""
    return {"message": f"Welcome to the {BRAND_NAME} API", "docs": "/docs"}
