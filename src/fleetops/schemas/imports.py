"""Spreadsheet import schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .duplicates import DuplicateMatchModel, DuplicateReportModel


class TripRecord(BaseModel):
    """One trip row from a shift tab, accepting the spreadsheet's column titles."""

    model_config = ConfigDict(populate_by_name=True)

    shift: str = Field(..., min_length=1, validation_alias=AliasChoices("shift", "turno"))
    date: datetime = Field(..., validation_alias=AliasChoices("Data", "data", "date"))
    vehicle: str = Field(..., min_length=1, validation_alias=AliasChoices("Veículo", "Veiculo", "veiculo", "vehicle"))
    city: str = Field(..., min_length=1, validation_alias=AliasChoices("Cidade", "cidade", "city"))
    driver: str = Field(..., min_length=1, validation_alias=AliasChoices("Motorista", "motorista", "driver"))
    passengers: int = Field(default=0, ge=0, validation_alias=AliasChoices("Passageiros", "passageiros", "passengers"))
    km_start: float = Field(default=0.0, ge=0, validation_alias=AliasChoices("KM Inicial", "kmInicial", "km_start"))
    km_end: float = Field(default=0.0, ge=0, validation_alias=AliasChoices("KM Final", "kmFinal", "km_end"))
    fuel: float = Field(default=0.0, ge=0, validation_alias=AliasChoices("Combustível", "Combustivel", "combustivel", "fuel"))
    amount: float = Field(default=0.0, ge=0, validation_alias=AliasChoices("Valor", "valor", "amount"))
    trip_type: Literal["entrada", "saida", "extra"] = Field(
        default="entrada",
        validation_alias=AliasChoices("Tipo", "tipo", "trip_type"),
    )

    @field_validator("vehicle", "city", "driver", mode="before")
    @classmethod
    def _text_cell(cls, value: Any) -> Any:
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("trip_type", mode="before")
    @classmethod
    def _lower_type(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class ImportTripsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_base64: str = Field(..., min_length=1, alias="fileBase64")
    file_name: str = Field(..., min_length=1, alias="fileName")
    auto_merge_duplicates: bool = Field(default=False, alias="autoMergeDuplicates")
    duplicate_threshold: float = Field(default=0.85, ge=0.5, le=1.0, alias="duplicateThreshold")
    imported_by: Optional[str] = Field(default=None, alias="importedBy")


class RowError(BaseModel):
    row: int
    sheet: str
    error: str


class DuplicatePreview(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    report: DuplicateReportModel
    details: List[DuplicateMatchModel]
    has_more: bool = Field(alias="hasMore")


class ImportTripsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    history_id: Optional[int] = Field(alias="historyId")
    total_records: int = Field(alias="totalRecords")
    successful_records: int = Field(alias="successfulRecords")
    failed_records: int = Field(alias="failedRecords")
    errors: List[RowError] = Field(default_factory=list)
    duplicates: DuplicatePreview
    auto_merge_applied: bool = Field(alias="autoMergeApplied")
    merged_cities: dict[str, str] = Field(default_factory=dict, alias="mergedCities")


class ImportHistoryEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    file_name: str = Field(alias="fileName")
    file_type: str = Field(alias="fileType")
    total_records: int = Field(alias="totalRecords")
    successful_records: int = Field(alias="successfulRecords")
    failed_records: int = Field(alias="failedRecords")
    errors: Optional[Any] = None
    imported_by: str = Field(alias="importedBy")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
