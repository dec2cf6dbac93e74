"""
Dispatch error taxonomy and the HTTP handlers that render it.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from hvac_crm.core.config import settings

logger = logging.getLogger(__name__)


class DispatchError(Exception):
    """Base class for errors surfaced by the dispatch services."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class NotFoundError(DispatchError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidArgumentError(DispatchError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(DispatchError):
    """Raised when a compare-and-swap update sees a stale version."""

    status_code = status.HTTP_409_CONFLICT


class StoreFailureError(DispatchError):
    """Underlying data-access failure. ``detail`` is hidden outside development."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_body(message: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    body.update(extra)
    return body


async def dispatch_error_handler(request: Request, exc: DispatchError) -> JSONResponse:
    extra: Dict[str, Any] = {}
    if exc.detail and settings.ENVIRONMENT == "development":
        extra["detail"] = exc.detail
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, **extra))


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "invalid value"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Invalid request", errors=errors),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    extra: Dict[str, Any] = {}
    if settings.ENVIRONMENT == "development":
        extra["detail"] = str(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal server error", **extra),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DispatchError, dispatch_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


__all__ = [
    "DispatchError",
    "NotFoundError",
    "InvalidArgumentError",
    "ConflictError",
    "StoreFailureError",
    "register_exception_handlers",
]
