"""Duplicate address endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, status

from ...schemas.duplicates import (
    DetectDuplicatesRequest,
    DetectDuplicatesResponse,
    DuplicateMatchModel,
    DuplicateReportModel,
    MergeActionModel,
    ReviewDuplicatesRequest,
    ReviewDuplicatesResponse,
    ReviewResultModel,
)
from ...services.duplicates import (
    ReviewDecision,
    attach_row_ids,
    detect_duplicates,
    detect_duplicates_in_database,
    generate_duplicate_report,
    review_duplicates,
    suggest_merge_actions,
)
from .errors import http_error

router = APIRouter(prefix="/duplicates", tags=["duplicates"])


@router.post("/detect", response_model=DetectDuplicatesResponse, status_code=status.HTTP_200_OK)
def detect(payload: DetectDuplicatesRequest) -> DetectDuplicatesResponse:
    """Compare the given addresses with each other and, optionally, with stored addresses."""
    try:
        matches = detect_duplicates(payload.addresses, payload.threshold)
        if payload.check_database:
            matches += detect_duplicates_in_database(payload.addresses)
        report = generate_duplicate_report(matches)
        actions = suggest_merge_actions(matches)
        if payload.check_database:
            actions = attach_row_ids(actions)
    except Exception as exc:
        raise http_error(exc, "detect duplicates") from exc

    return DetectDuplicatesResponse(
        duplicates=[DuplicateMatchModel.from_match(match) for match in matches],
        report=DuplicateReportModel.from_report(report),
        summary=f"Encontradas {len(matches)} duplicatas potenciais",
        merge_actions=[MergeActionModel.from_action(action) for action in actions],
    )


@router.post("/review", response_model=ReviewDuplicatesResponse, status_code=status.HTTP_200_OK)
def review(payload: ReviewDuplicatesRequest) -> ReviewDuplicatesResponse:
    """Apply reviewer decisions; merges rewrite the stored address texts."""
    decisions = [
        ReviewDecision(original=item.original, duplicate=item.duplicate, action=item.action, reason=item.reason)
        for item in payload.duplicates
    ]
    try:
        result = review_duplicates(decisions)
    except Exception as exc:
        raise http_error(exc, "review duplicates") from exc

    return ReviewDuplicatesResponse(
        message=(
            f"Revisão concluída: {result.merged} merges, {result.split} splits, {result.ignored} ignoradas"
        ),
        results=ReviewResultModel(
            merged=result.merged,
            split=result.split,
            ignored=result.ignored,
            rows_updated=result.rows_updated,
            errors=result.errors,
        ),
        reviewed_at=datetime.now(timezone.utc),
    )
