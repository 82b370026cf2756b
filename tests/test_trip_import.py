import base64
import json
from datetime import datetime
from io import BytesIO

import pytest
from openpyxl import Workbook

from src.fleetops.config import settings
from src.fleetops.schemas.imports import ImportTripsRequest
from src.fleetops.services.imports import (
    import_trips_with_duplicate_detection,
    list_import_history,
    parse_trip_rows,
)

HEADER = ["Data", "Veículo", "Cidade", "Motorista", "Passageiros", "KM Inicial", "KM Final", "Combustível", "Valor", "Tipo"]


def _trip_workbook() -> Workbook:
    workbook = Workbook()
    first = workbook.active
    first.title = "1° Turno"
    first.append(HEADER)
    first.append([datetime(2024, 5, 1, 6, 0), "ABC1D23", "Curitiba", "João", 12, 1000, 1050, 30.5, 250, "Entrada"])
    first.append([datetime(2024, 5, 1, 7, 0), "ABC1D23", "curitiba", "João", 10, 1050, 1090, 20, 200, "SAIDA"])
    first.append([None] * len(HEADER))
    first.append([datetime(2024, 5, 1, 8, 0), "XYZ9K87", "Curitiba", None, 5, 10, 20, 5, 50, "extra"])

    second = workbook.create_sheet("2° Turno")
    second.append(HEADER)
    second.append([datetime(2024, 5, 1, 14, 0), 4521, "Araucária", "Maria", 8, 500, 540, 12, 120, "entrada"])

    notes = workbook.create_sheet("Resumo")
    notes.append(HEADER)
    notes.append([datetime(2024, 5, 1), "AAA0000", "Londrina", "Pedro", 1, 0, 1, 0, 0, "entrada"])
    return workbook


def _encode(workbook: Workbook) -> str:
    buffer = BytesIO()
    workbook.save(buffer)
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def _request(**overrides) -> ImportTripsRequest:
    values = {"file_base64": _encode(_trip_workbook()), "file_name": "viagens_maio.xlsx", **overrides}
    return ImportTripsRequest(**values)


def test_parse_trip_rows_reads_shift_tabs_only() -> None:
    records, errors, total = parse_trip_rows(_trip_workbook())

    assert total == 4
    assert [record.city for record in records] == ["Curitiba", "curitiba", "Araucária"]
    assert [record.shift for record in records] == ["1° Turno", "1° Turno", "2° Turno"]
    assert records[1].trip_type == "saida"
    assert records[2].vehicle == "4521"
    assert records[0].km_end == 1050
    assert len(errors) == 1
    assert (errors[0].row, errors[0].sheet) == (3, "1° Turno")


def test_import_reports_duplicate_cities(fake_db) -> None:
    fake_db.rows("viagens").append({"id": 1, "endereco": "Araucaria"})

    response = import_trips_with_duplicate_detection(_request())

    assert response.success
    assert response.message == "Importação concluída: 3/4 registros"
    assert (response.total_records, response.successful_records, response.failed_records) == (4, 3, 1)
    assert response.duplicates.total == 2
    assert (response.duplicates.report.high, response.duplicates.report.low) == (1, 1)
    assert response.duplicates.details[0].original == "Curitiba"
    assert response.duplicates.details[0].duplicate == "curitiba"
    assert response.auto_merge_applied is False
    assert response.merged_cities == {}


def test_import_records_history(fake_db) -> None:
    response = import_trips_with_duplicate_detection(_request(imported_by="ana@example.com"))

    [row] = fake_db.rows("import_history")
    assert response.history_id == row["id"]
    assert (row["total_records"], row["successful_records"], row["failed_records"]) == (4, 3, 1)
    assert row["imported_by"] == "ana@example.com"
    assert json.loads(row["errors"])[0]["sheet"] == "1° Turno"

    [entry] = list_import_history()
    assert entry.id == row["id"]
    assert entry.file_name == "viagens_maio.xlsx"


def test_auto_merge_rewrites_city_variants(fake_db) -> None:
    response = import_trips_with_duplicate_detection(_request(auto_merge_duplicates=True))

    assert response.auto_merge_applied is True
    assert response.merged_cities == {"curitiba": "Curitiba"}


def test_duplicate_preview_is_limited(fake_db, monkeypatch: pytest.MonkeyPatch) -> None:
    fake_db.rows("viagens").append({"id": 1, "endereco": "Araucaria"})
    monkeypatch.setattr(settings, "duplicate_preview_limit", 1)

    response = import_trips_with_duplicate_detection(_request())

    assert len(response.duplicates.details) == 1
    assert response.duplicates.has_more is True


def test_data_url_prefix_is_accepted(fake_db) -> None:
    request = _request()
    request.file_base64 = (
        "data:application/vnd.openxmlformats-officedocument.spreadsheetml.sheet;base64," + request.file_base64
    )

    assert import_trips_with_duplicate_detection(request).total_records == 4


@pytest.mark.parametrize("payload", ["not base64!!", base64.b64encode(b"plain text").decode("ascii")])
def test_unreadable_file_is_recorded_as_failed(fake_db, payload: str) -> None:
    with pytest.raises(ValueError):
        import_trips_with_duplicate_detection(_request(file_base64=payload))

    [row] = fake_db.rows("import_history")
    assert row["failed_records"] == 1
    assert "error" in json.loads(row["errors"])


def test_unreadable_file_without_storage_still_raises_value_error(no_db) -> None:
    with pytest.raises(ValueError):
        import_trips_with_duplicate_detection(_request(file_base64="@@@"))
