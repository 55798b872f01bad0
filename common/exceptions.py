"""Domain failures raised by services and their HTTP translation."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .responses import error_response

logger = logging.getLogger(__name__)


class HotelBookingError(Exception):
    """Base class for every failure a service reports to its caller."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(HotelBookingError):
    """A referenced id has no stored record."""

    @classmethod
    def for_entity(cls, entity: str, entity_id: int | str) -> "NotFoundError":
        return cls(f"{entity} with id {entity_id} not found")


class PermissionDeniedError(HotelBookingError):
    pass


class ValidationFailedError(HotelBookingError):
    pass


class DuplicateReviewError(HotelBookingError):
    def __init__(self, message: str = "You have already reviewed this room") -> None:
        super().__init__(message)


class InvalidStatusTransitionError(HotelBookingError):
    pass


class OtpError(HotelBookingError):
    pass


class AuthenticationError(HotelBookingError):
    pass


def _envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_response(message).model_dump(by_alias=True))


def domain_error_handler(request: Request, exc: HotelBookingError) -> JSONResponse:
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _envelope(status.HTTP_400_BAD_REQUEST, exc.message)


def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return _envelope(status.HTTP_400_BAD_REQUEST, message)


def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = _envelope(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure with the shared response envelope."""

    app.add_exception_handler(HotelBookingError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
