"""Database persistence for spreadsheet import history."""

from __future__ import annotations

import json
import logging
from typing import Any

from ..db.supabase import execute_query, require_client
from ..schemas.imports import ImportHistoryEntry

logger = logging.getLogger(__name__)

IMPORT_HISTORY_TABLE = "import_history"


def record_import(
    file_name: str,
    file_type: str,
    total_records: int,
    successful_records: int,
    errors: Any = None,
    imported_by: str | None = None,
) -> ImportHistoryEntry:
    client = require_client()
    values = {
        "file_name": file_name,
        "file_type": file_type,
        "total_records": total_records,
        "successful_records": successful_records,
        "failed_records": total_records - successful_records,
        "errors": json.dumps(errors, ensure_ascii=False, default=str) if errors else None,
        "imported_by": imported_by or "system",
    }
    response = execute_query(
        client.table(IMPORT_HISTORY_TABLE).insert(values),
        f"record import of '{file_name}'",
    )
    rows = response.data or []
    entry = ImportHistoryEntry.model_validate(rows[0] if rows else {"id": 0, **values})
    logger.info(f"Recorded import history {entry.id} for '{file_name}'")
    return entry


def record_failed_import(file_name: str, file_type: str, error: str, imported_by: str | None = None) -> ImportHistoryEntry:
    client = require_client()
    values = {
        "file_name": file_name,
        "file_type": file_type,
        "total_records": 0,
        "successful_records": 0,
        "failed_records": 1,
        "errors": json.dumps({"error": error}, ensure_ascii=False),
        "imported_by": imported_by or "system",
    }
    response = execute_query(
        client.table(IMPORT_HISTORY_TABLE).insert(values),
        f"record failed import of '{file_name}'",
    )
    rows = response.data or []
    return ImportHistoryEntry.model_validate(rows[0] if rows else {"id": 0, **values})


def fetch_import_history(limit: int = 50) -> list[ImportHistoryEntry]:
    client = require_client()
    response = execute_query(
        client.table(IMPORT_HISTORY_TABLE).select("*").order("created_at", desc=True).limit(limit),
        "load import history",
    )
    return [ImportHistoryEntry.model_validate(row) for row in response.data or []]
