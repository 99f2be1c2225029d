"""Translate service errors into HTTP responses."""

from fastapi import HTTPException, status

from src.services.exceptions import (
    CommissionError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    WriteFailedError,
)

STATUS_BY_ERROR = {
    InvalidInputError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidStateError: status.HTTP_409_CONFLICT,
    WriteFailedError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def http_error(exc: CommissionError) -> HTTPException:
    """Map a service error to an HTTPException (500 for anything unmapped)."""
    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )
