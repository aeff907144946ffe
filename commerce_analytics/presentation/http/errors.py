from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from commerce_analytics.domain.errors import (
    AnalyticsError,
    InvalidParameterError,
    NotFoundError,
    UnknownToolError,
    WritesDisabledError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[AnalyticsError], int], ...] = (
    (InvalidParameterError, status.HTTP_400_BAD_REQUEST),
    (WritesDisabledError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (UnknownToolError, status.HTTP_404_NOT_FOUND),
)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def status_for(exc: AnalyticsError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _action(request: Request) -> str:
    route = request.scope.get("route")
    name = getattr(route, "name", None)
    return name.replace("_", " ") if name else "handle request"


def install_error_handlers(app: FastAPI) -> None:
    """Every error leaves the app as `{"message": ...}`."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if not errors:
            return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request")
        first = errors[0]
        field = first.get("loc", ())[-1:] or ("request",)
        return error_response(status.HTTP_400_BAD_REQUEST, f"{field[0]}: {first.get('msg', 'invalid value')}")

    @app.exception_handler(AnalyticsError)
    async def analytics_error_handler(request: Request, exc: AnalyticsError):
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error("Failed to %s", _action(request), exc_info=exc)
        return error_response(status_code, str(exc) or f"Failed to {_action(request)}")

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error("Failed to %s", _action(request), exc_info=exc)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or f"Failed to {_action(request)}")
