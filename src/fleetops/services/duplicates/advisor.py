"""Turn duplicate matches into merge suggestions and apply reviewed decisions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from ...models.domain import Confidence, DuplicateMatch, MergeAction, MergeDecision
from ...persistence import addresses as address_store
from ...persistence.errors import StorageUnavailableError

logger = logging.getLogger(__name__)


class ReviewAction(str, Enum):
    MERGE = "merge"
    SPLIT = "split"
    IGNORE = "ignore"


@dataclass(slots=True)
class ReviewDecision:
    original: str
    duplicate: str
    action: ReviewAction
    reason: str | None = None


@dataclass(slots=True)
class ReviewResult:
    merged: int = 0
    split: int = 0
    ignored: int = 0
    rows_updated: int = 0
    errors: list[dict] = field(default_factory=list)


def _pair_key(match: DuplicateMatch) -> tuple[str, str]:
    first, second = sorted((match.original, match.duplicate))
    return first, second


def _representative(key: tuple[str, str], candidates: Sequence[DuplicateMatch]) -> DuplicateMatch:
    # A pair seen in both directions keeps the key's direction.
    if len({(match.original, match.duplicate) for match in candidates}) > 1:
        for match in candidates:
            if (match.original, match.duplicate) == key:
                return match
    return candidates[0]


def suggest_merge_actions(matches: Sequence[DuplicateMatch]) -> list[MergeAction]:
    """One action per unordered pair: merge high, flag medium, drop low.

    The action for a pair does not depend on where its matches sit in
    ``matches``; actions come out in order of each pair's first appearance.
    """
    grouped: dict[tuple[str, str], list[DuplicateMatch]] = {}
    for match in matches:
        grouped.setdefault(_pair_key(match), []).append(match)

    actions: list[MergeAction] = []
    for key, candidates in grouped.items():
        match = _representative(key, candidates)
        percentage = f"{match.similarity * 100:.1f}%"
        if match.confidence is Confidence.HIGH:
            actions.append(
                MergeAction(
                    action=MergeDecision.MERGE,
                    reason=f"Alta confiança de duplicata ({percentage})",
                    original=match.original,
                    duplicate=match.duplicate,
                    similarity=match.similarity,
                )
            )
        elif match.confidence is Confidence.MEDIUM:
            actions.append(
                MergeAction(
                    action=MergeDecision.KEEP_SEPARATE,
                    reason=f"Confiança média ({percentage}) - requer revisão manual",
                    original=match.original,
                    duplicate=match.duplicate,
                    similarity=match.similarity,
                )
            )
    return actions


def attach_row_ids(actions: Sequence[MergeAction], table: str | None = None) -> list[MergeAction]:
    """Fill ``original_id`` and ``duplicate_ids`` from the stored rows holding each text.

    Texts with no stored row keep ``None``/``[]``. When the database cannot be
    reached the actions are returned without ids.
    """
    actions = list(actions)
    if not actions:
        return actions
    texts = {action.original for action in actions} | {action.duplicate for action in actions}
    try:
        row_ids = address_store.fetch_address_ids(texts, table)
    except StorageUnavailableError as exc:
        logger.warning(f"Leaving merge suggestions without row ids: {exc}")
        return actions

    for action in actions:
        original_ids = row_ids.get(action.original, [])
        action.original_id = original_ids[0] if original_ids else None
        action.duplicate_ids = list(row_ids.get(action.duplicate, []))
    return actions


def build_canonical_map(matches: Sequence[DuplicateMatch]) -> dict[str, str]:
    """Map each auto-mergeable duplicate text to the text it should become.

    Chains (``b -> a`` and ``c -> b``) resolve to the first original so every
    duplicate points at a text that is not itself rewritten.
    """
    mapping: dict[str, str] = {}
    for action in suggest_merge_actions(matches):
        if action.action is not MergeDecision.MERGE:
            continue
        if action.duplicate in mapping or action.duplicate == action.original:
            continue
        mapping[action.duplicate] = action.original

    def resolve(text: str) -> str:
        seen = {text}
        while text in mapping and mapping[text] not in seen:
            text = mapping[text]
            seen.add(text)
        return text

    return {duplicate: resolve(original) for duplicate, original in mapping.items()}


def review_duplicates(decisions: Sequence[ReviewDecision], table: str | None = None) -> ReviewResult:
    """Apply a reviewer's decisions.

    ``merge`` rewrites stored rows and fails the whole call if the database is
    unavailable. ``split`` and ``ignore`` are only counted.
    """
    result = ReviewResult()
    for decision in decisions:
        if decision.original.strip() == decision.duplicate.strip():
            result.errors.append(
                {
                    "original": decision.original,
                    "duplicate": decision.duplicate,
                    "error": "original and duplicate are the same address",
                }
            )
            continue

        if decision.action is ReviewAction.MERGE:
            result.rows_updated += address_store.merge_addresses(decision.original, [decision.duplicate], table)
            result.merged += 1
            logger.info(f"Merge: '{decision.original}' <- '{decision.duplicate}'")
        elif decision.action is ReviewAction.SPLIT:
            result.split += 1
            logger.info(f"Split: '{decision.original}' <> '{decision.duplicate}'")
        else:
            result.ignored += 1
            logger.debug(f"Ignore: '{decision.original}' ~ '{decision.duplicate}'")
    return result
