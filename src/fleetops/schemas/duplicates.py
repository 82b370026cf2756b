"""Duplicate detection request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.domain import Confidence, DuplicateMatch, DuplicateReport, MergeAction, MergeDecision
from ..services.duplicates import ReviewAction


class DuplicateMatchModel(BaseModel):
    original: str
    duplicate: str
    similarity: float
    confidence: Confidence

    @classmethod
    def from_match(cls, match: DuplicateMatch) -> "DuplicateMatchModel":
        return cls(
            original=match.original,
            duplicate=match.duplicate,
            similarity=match.similarity,
            confidence=match.confidence,
        )


class DuplicateReportModel(BaseModel):
    total: int
    high: int
    medium: int
    low: int
    summary: str

    @classmethod
    def from_report(cls, report: DuplicateReport) -> "DuplicateReportModel":
        return cls(total=report.total, high=report.high, medium=report.medium, low=report.low, summary=report.summary)


class MergeActionModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: MergeDecision
    reason: str
    original: str
    duplicate: str
    similarity: float
    original_id: Optional[int] = Field(default=None, alias="originalId")
    duplicate_ids: List[int] = Field(default_factory=list, alias="duplicateIds")

    @classmethod
    def from_action(cls, action: MergeAction) -> "MergeActionModel":
        return cls(
            action=action.action,
            reason=action.reason,
            original=action.original,
            duplicate=action.duplicate,
            similarity=action.similarity,
            original_id=action.original_id,
            duplicate_ids=list(action.duplicate_ids),
        )


class DetectDuplicatesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    addresses: List[str] = Field(..., min_length=1, description="Address texts to compare with each other.")
    threshold: float = Field(default=0.85, ge=0.5, le=1.0)
    check_database: bool = Field(default=True, alias="checkDatabase")


class DetectDuplicatesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    duplicates: List[DuplicateMatchModel]
    report: DuplicateReportModel
    summary: str
    merge_actions: List[MergeActionModel] = Field(default_factory=list, alias="mergeActions")


class ReviewItem(BaseModel):
    original: str = Field(..., min_length=1)
    duplicate: str = Field(..., min_length=1)
    action: ReviewAction
    reason: Optional[str] = None


class ReviewDuplicatesRequest(BaseModel):
    duplicates: List[ReviewItem] = Field(..., min_length=1)


class ReviewResultModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    merged: int
    split: int
    ignored: int
    rows_updated: int = Field(alias="rowsUpdated")
    errors: List[dict]


class ReviewDuplicatesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    results: ReviewResultModel
    reviewed_at: datetime = Field(alias="reviewedAt")
