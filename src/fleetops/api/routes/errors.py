"""Translate service exceptions into HTTP errors."""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from ...persistence.errors import RecordNotFoundError, StorageUnavailableError
from ...services.routing.lifecycle import InvalidStatusTransition
from ...services.sharing import ShareStateError
from ...services.weather import WeatherUnavailableError

logger = logging.getLogger(__name__)

# Checked in order; subclasses of ValueError come before ValueError itself.
_STATUS_BY_ERROR: tuple[tuple[type[Exception], int], ...] = (
    (RecordNotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidStatusTransition, status.HTTP_409_CONFLICT),
    (ShareStateError, status.HTTP_409_CONFLICT),
    (StorageUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (WeatherUnavailableError, status.HTTP_502_BAD_GATEWAY),
    (ValueError, status.HTTP_400_BAD_REQUEST),
)


def http_error(exc: Exception, action: str) -> HTTPException:
    if isinstance(exc, HTTPException):
        return exc
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            if status_code >= 500:
                logger.error(f"Failed to {action}: {exc}")
            return HTTPException(status_code=status_code, detail=str(exc))

    logger.exception(f"Unexpected error while trying to {action}: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}: {exc}",
    )
