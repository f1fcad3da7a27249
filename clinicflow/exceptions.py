from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)


class ClinicError(Exception):
    """Base class for errors raised by the booking and records services."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SlotFullError(ClinicError):
    status_code = 409

    def __init__(self, date: str, time: str, capacity: int):
        super().__init__(f"The {time} slot on {date} is fully booked ({capacity}/{capacity}).")
        self.date = date
        self.time = time
        self.capacity = capacity


class InvalidTransitionError(ClinicError):
    status_code = 409

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change appointment status from '{current}' to '{requested}'.")
        self.current = current
        self.requested = requested


class BlackoutError(ClinicError):
    status_code = 422

    def __init__(self, date: str, reason: str):
        super().__init__(reason)
        self.date = date
        self.reason = reason


class InvalidSlotError(ClinicError):
    status_code = 422

    def __init__(self, time: str):
        super().__init__(f"'{time}' is not a bookable time slot.")
        self.time = time


class BookingValidationError(ClinicError):
    status_code = 422


class NotFoundError(ClinicError):
    status_code = 404


class PersistenceError(ClinicError):
    status_code = 503


class AIProviderError(ClinicError):
    status_code = 502


def create_error_response(error_message: str, status_code: int = 400) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message
    }


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authentication required", 401)
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )


async def clinic_exception_handler(request: Request, exc: ClinicError) -> JSONResponse:
    """Turn service-layer errors into the standard error envelope"""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.message, exc.status_code)
    )
