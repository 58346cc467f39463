"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type and handler callables that turn engine errors,
FastAPI request errors and unexpected failures into application/problem+json
responses.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from forms_engine.errors import FormsEngineError

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def problem_response(problem: dict[str, Any], status_code: int, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(problem, status_code=status_code, media_type=PROBLEM_MEDIA_TYPE, headers=headers or None)


async def handle_engine_error(request: Request, exc: FormsEngineError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("engine_error path=%s type=%s", request.url.path, type(exc).__name__, exc_info=exc)
    else:
        logger.info("engine_error path=%s type=%s detail=%s", request.url.path, type(exc).__name__, exc.message)
    return problem_response(exc.to_problem(), exc.status_code)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        detail = exc.detail
    else:
        detail = {"title": "Error", "status": exc.status_code, "detail": str(exc.detail or "")}
    headers = {str(k): str(v) for k, v in (exc.headers or {}).items()}
    return problem_response(detail, exc.status_code, headers)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    problem = {
        "title": "Invalid Request",
        "status": 422,
        "detail": "Request validation failed",
        "errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()],
    }
    return problem_response(problem, 422)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return problem_response({"title": "Internal Server Error", "status": 500}, 500)


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "handle_engine_error",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_unexpected_error",
    "problem_response",
]
