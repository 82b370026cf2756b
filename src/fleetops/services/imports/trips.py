"""Trip spreadsheet import with duplicate city detection."""

from __future__ import annotations

import base64
import binascii
import logging
import zipfile
from io import BytesIO
from typing import Sequence

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook
from pydantic import ValidationError

from ...config import settings
from ...persistence import imports as import_store
from ...persistence.errors import StorageUnavailableError
from ...schemas.duplicates import DuplicateMatchModel, DuplicateReportModel
from ...schemas.imports import (
    DuplicatePreview,
    ImportHistoryEntry,
    ImportTripsRequest,
    ImportTripsResponse,
    RowError,
    TripRecord,
)
from ..duplicates import (
    build_canonical_map,
    detect_duplicates,
    detect_duplicates_in_database,
    generate_duplicate_report,
)

logger = logging.getLogger(__name__)

FILE_TYPE = "viagens"


def _open_workbook(file_base64: str) -> Workbook:
    # Dashboard uploads may arrive as data URLs.
    if file_base64.startswith("data:") and "," in file_base64:
        file_base64 = file_base64.split(",", 1)[1]
    try:
        payload = base64.b64decode(file_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("File content is not valid base64.") from exc
    try:
        return load_workbook(filename=BytesIO(payload), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise ValueError(f"Could not read spreadsheet: {exc}") from exc


def _describe_validation_error(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )


def parse_trip_rows(workbook: Workbook) -> tuple[list[TripRecord], list[RowError], int]:
    """Validate every non-empty row of the known shift tabs.

    Returns the valid records, one error per rejected row and the total row
    count. Row numbers count data rows across all shift tabs, starting at 1.
    """
    records: list[TripRecord] = []
    errors: list[RowError] = []
    total = 0

    for sheet_name in workbook.sheetnames:
        if sheet_name not in settings.import_sheet_names:
            continue
        rows = workbook[sheet_name].iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            continue
        keys = [str(cell).strip() if cell is not None else "" for cell in header]

        for values in rows:
            if all(value is None or str(value).strip() == "" for value in values):
                continue
            total += 1
            data = {
                key: value
                for key, value in zip(keys, values)
                if key and value is not None and not (isinstance(value, str) and not value.strip())
            }
            data["turno"] = sheet_name
            try:
                records.append(TripRecord.model_validate(data))
            except ValidationError as exc:
                errors.append(RowError(row=total, sheet=sheet_name, error=_describe_validation_error(exc)))
    return records, errors, total


def _distinct(values: Sequence[str]) -> list[str]:
    return list(dict.fromkeys(values))


def import_trips_with_duplicate_detection(request: ImportTripsRequest) -> ImportTripsResponse:
    """Parse a trip workbook, flag duplicate city spellings and record the import.

    An unreadable workbook records a failed history row before the
    ``ValueError`` reaches the caller.
    """
    try:
        workbook = _open_workbook(request.file_base64)
    except ValueError as exc:
        logger.error(f"Import of '{request.file_name}' failed: {exc}")
        try:
            import_store.record_failed_import(request.file_name, FILE_TYPE, str(exc), request.imported_by)
        except StorageUnavailableError as storage_exc:
            logger.warning(f"Could not record failed import of '{request.file_name}': {storage_exc}")
        raise

    try:
        records, errors, total = parse_trip_rows(workbook)
    finally:
        workbook.close()

    cities = _distinct([record.city for record in records])
    internal = detect_duplicates(cities, request.duplicate_threshold)
    stored = detect_duplicates_in_database(cities)
    matches = [*internal, *stored]
    report = generate_duplicate_report(matches)
    logger.info(f"Duplicates in '{request.file_name}': {report.summary}")

    merged_cities: dict[str, str] = {}
    if request.auto_merge_duplicates:
        canonical = build_canonical_map(matches)
        merged_cities = {city: canonical[city] for city in cities if city in canonical}
        records = [
            record.model_copy(update={"city": merged_cities.get(record.city, record.city)}) for record in records
        ]
        logger.info(f"Auto-merge rewrote {len(merged_cities)} city spelling(s) in '{request.file_name}'")

    history = import_store.record_import(
        request.file_name,
        FILE_TYPE,
        total,
        len(records),
        errors=[error.model_dump() for error in errors],
        imported_by=request.imported_by,
    )
    logger.info(f"Trip import '{request.file_name}' finished: {len(records)}/{total} rows")

    limit = settings.duplicate_preview_limit
    return ImportTripsResponse(
        message=f"Importação concluída: {len(records)}/{total} registros",
        history_id=history.id,
        total_records=total,
        successful_records=len(records),
        failed_records=total - len(records),
        errors=errors,
        duplicates=DuplicatePreview(
            total=len(matches),
            report=DuplicateReportModel.from_report(report),
            details=[DuplicateMatchModel.from_match(match) for match in matches[:limit]],
            has_more=len(matches) > limit,
        ),
        auto_merge_applied=request.auto_merge_duplicates,
        merged_cities=merged_cities,
    )


def list_import_history(limit: int = 50) -> list[ImportHistoryEntry]:
    return import_store.fetch_import_history(limit)
