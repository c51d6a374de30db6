# backend/drivebook/errors.py
"""
Exception handlers that render every error as ``application/problem+json``.

Members: ``type``, ``title``, ``status``, ``detail`` and ``instance`` from
RFC 7807, plus ``code``, ``errors`` and ``request_id`` when known.
"""

from http import HTTPStatus
import logging
from typing import Any, Dict, Mapping, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.exceptions import DomainException
from .core.request_context import current_request_id

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"


def _title(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def problem_response(
    request: Request,
    status_code: int,
    detail: str = "",
    *,
    code: Optional[str] = None,
    errors: Any = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {
        "type": "about:blank",
        "title": _title(status_code),
        "status": status_code,
        "detail": detail,
        "instance": request.url.path,
    }
    if code:
        body["code"] = code
    if errors:
        body["errors"] = jsonable_encoder(errors)
    request_id = current_request_id()
    if request_id:
        body["request_id"] = request_id
    return JSONResponse(
        body, status_code=status_code, media_type=PROBLEM_MEDIA_TYPE, headers=dict(headers or {})
    )


def _from_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Domain errors arrive as {"message", "code", "details"}; everything else is plain text
    detail = exc.detail
    if isinstance(detail, dict):
        code = detail.get("code")
        return problem_response(
            request,
            exc.status_code,
            str(detail.get("message") or ""),
            code=code if isinstance(code, str) else None,
            errors=detail.get("details"),
            headers=exc.headers,
        )
    return problem_response(
        request, exc.status_code, "" if detail is None else str(detail), headers=exc.headers
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the problem+json handlers on ``app``."""

    @app.exception_handler(HTTPException)
    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _from_http_exception(request, exc)

    @app.exception_handler(DomainException)
    async def handle_domain_exception(request: Request, exc: DomainException) -> JSONResponse:
        # Raised outside a route's try/except, e.g. from a dependency
        return _from_http_exception(request, exc.to_http_exception())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return problem_response(
            request, 422, "Request validation failed", code="validation_error", errors=exc.errors()
        )

    @app.exception_handler(ValidationError)
    async def handle_model_validation(request: Request, exc: ValidationError) -> JSONResponse:
        return problem_response(
            request, 422, "Validation failed", code="validation_error", errors=exc.errors()
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return problem_response(
            request, 500, "Internal Server Error", code="internal_server_error"
        )
