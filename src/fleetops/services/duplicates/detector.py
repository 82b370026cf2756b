"""Duplicate address detection within a batch and against stored addresses."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Sequence

from ...config import settings
from ...models.domain import Confidence, DuplicateMatch, DuplicateReport
from ...persistence import addresses as address_store
from .normalizer import normalize_address
from .similarity import calculate_similarity, classify_confidence

logger = logging.getLogger(__name__)


def _validate_threshold(threshold: float) -> None:
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"threshold must be between 0 and 1, got {threshold}")


def detect_duplicates(addresses: Sequence[str], threshold: float | None = None) -> list[DuplicateMatch]:
    """Compare every pair of ``addresses`` and return those at or above ``threshold``.

    Addresses are normalized once up front. Results follow input order: for
    each address ``i`` its matches with later addresses ``j > i`` in order.
    """
    threshold = settings.duplicate_threshold if threshold is None else threshold
    _validate_threshold(threshold)

    normalized = [normalize_address(address) for address in addresses]
    matches: list[DuplicateMatch] = []
    for i in range(len(addresses)):
        for j in range(i + 1, len(addresses)):
            similarity = calculate_similarity(normalized[i], normalized[j])
            confidence = classify_confidence(similarity, threshold)
            if confidence is None:
                continue
            matches.append(
                DuplicateMatch(
                    original=addresses[i],
                    duplicate=addresses[j],
                    similarity=similarity,
                    confidence=confidence,
                )
            )
    return matches


def detect_duplicates_in_database(new_addresses: Sequence[str], table: str | None = None) -> list[DuplicateMatch]:
    """Compare incoming addresses against every distinct address already stored.

    Detection is advisory: when the stored addresses cannot be fetched the
    failure is logged and an empty list is returned so the caller can go on.
    """
    table = table or settings.addresses_table
    if not new_addresses:
        return []

    try:
        existing_addresses = address_store.fetch_existing_addresses(table)
    except Exception as exc:
        logger.warning(f"Skipping database duplicate check for '{table}': {exc}")
        return []

    matches: list[DuplicateMatch] = []
    for new_address in new_addresses:
        for existing in existing_addresses:
            similarity = calculate_similarity(new_address, existing)
            confidence = classify_confidence(similarity, settings.duplicate_threshold)
            if confidence is None:
                continue
            matches.append(
                DuplicateMatch(
                    original=existing,
                    duplicate=new_address,
                    similarity=similarity,
                    confidence=confidence,
                )
            )
    logger.info(
        f"Compared {len(new_addresses)} new address(es) with {len(existing_addresses)} stored in '{table}': "
        f"{len(matches)} match(es)"
    )
    return matches


def generate_duplicate_report(matches: Sequence[DuplicateMatch]) -> DuplicateReport:
    counts = Counter(match.confidence for match in matches)
    high = counts.get(Confidence.HIGH, 0)
    medium = counts.get(Confidence.MEDIUM, 0)
    low = counts.get(Confidence.LOW, 0)
    return DuplicateReport(
        total=len(matches),
        high=high,
        medium=medium,
        low=low,
        summary=f"Total: {len(matches)} | Alta: {high} | Média: {medium} | Baixa: {low}",
    )
