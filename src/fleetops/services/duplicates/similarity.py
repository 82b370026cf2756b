"""Edit-distance similarity and confidence tiers."""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein

from ...config import settings
from ...models.domain import Confidence


def calculate_similarity(first: str, second: str) -> float:
    """Return ``1 - levenshtein / longest`` for the lower-cased, trimmed inputs.

    Only case and surrounding whitespace are normalized here; callers that
    compare addresses should run :func:`normalize_address` first.
    """
    s1 = first.lower().strip()
    s2 = second.lower().strip()
    if s1 == s2:
        return 1.0

    longest = max(len(s1), len(s2))
    distance = Levenshtein.distance(s1, s2)
    return 1.0 - distance / longest


def classify_confidence(similarity: float, threshold: float | None = None) -> Confidence | None:
    """Bucket a similarity score; ``None`` means the pair is not a duplicate."""
    minimum = settings.duplicate_threshold if threshold is None else threshold
    if similarity < minimum:
        return None
    if similarity >= settings.duplicate_high_confidence:
        return Confidence.HIGH
    if similarity >= settings.duplicate_medium_confidence:
        return Confidence.MEDIUM
    return Confidence.LOW
