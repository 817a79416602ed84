"""Exception handlers: map domain and framework errors to JSON responses.

Every error body has the shape {"error": <message>, "code": <CODE>} with an
optional "details" object. Register with register_exception_handlers(app).
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from kinfeed.core.config import get_settings
from kinfeed.domain.exceptions import KinfeedException
from kinfeed.middleware.request_id import get_request_id

logger = logging.getLogger(__name__)

_ERROR_CODE_STATUS: dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "AUTHENTICATION_ERROR": 401,
    "SQL_NOT_CONFIGURED": 503,
}


def _kinfeed_exception_handler(request: Request, exc: KinfeedException) -> JSONResponse:
    status = _ERROR_CODE_STATUS.get(exc.error_code, 500)
    if status >= 500:
        logger.error("%s on %s: %s", exc.error_code, request.url.path, exc.message)
        body = {"error": "Internal server error", "code": exc.error_code}
        return JSONResponse(status_code=status, content=body)
    headers = {"WWW-Authenticate": "Bearer"} if status == 401 else None
    return JSONResponse(status_code=status, content=exc.to_dict(), headers=headers)


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error": "Request validation failed",
            "code": "VALIDATION_ERROR",
            "details": {"errors": exc.errors()},
        },
    )


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail), "code": "HTTP_ERROR"},
        headers=getattr(exc, "headers", None),
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """500 with a generic message; internals only when debug is on."""
    logger.exception(
        "Unhandled exception (request_id=%s): %s", get_request_id(), exc
    )
    message = str(exc) if get_settings().debug else "Internal server error"
    return JSONResponse(
        status_code=500, content={"error": message, "code": "INTERNAL_ERROR"}
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all handlers. Call once after creating the app."""
    app.add_exception_handler(KinfeedException, _kinfeed_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
