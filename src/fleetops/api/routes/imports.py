"""Spreadsheet import endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Query, status

from ...schemas.imports import ImportHistoryEntry, ImportTripsRequest, ImportTripsResponse
from ...services.imports import import_trips_with_duplicate_detection, list_import_history
from .errors import http_error

router = APIRouter(prefix="/imports", tags=["imports"])


@router.post("/trips", response_model=ImportTripsResponse, status_code=status.HTTP_201_CREATED)
def import_trips(payload: ImportTripsRequest) -> ImportTripsResponse:
    """Import a base64-encoded trip workbook and report duplicate city spellings."""
    try:
        return import_trips_with_duplicate_detection(payload)
    except Exception as exc:
        raise http_error(exc, f"import '{payload.file_name}'") from exc


@router.get("/history", response_model=List[ImportHistoryEntry], status_code=status.HTTP_200_OK)
def history(limit: int = Query(50, ge=1, le=500)) -> List[ImportHistoryEntry]:
    try:
        return list_import_history(limit)
    except Exception as exc:
        raise http_error(exc, "load import history") from exc
