from itertools import permutations

import pytest

from src.fleetops.models.domain import Confidence, DuplicateMatch, MergeDecision
from src.fleetops.persistence.errors import StorageUnavailableError
from src.fleetops.services.duplicates import (
    ReviewAction,
    ReviewDecision,
    attach_row_ids,
    build_canonical_map,
    review_duplicates,
    suggest_merge_actions,
)


def _match(original: str, duplicate: str, similarity: float, confidence: Confidence) -> DuplicateMatch:
    return DuplicateMatch(original=original, duplicate=duplicate, similarity=similarity, confidence=confidence)


def test_high_confidence_suggests_merge() -> None:
    actions = suggest_merge_actions([_match("Curitiba", "curitiba", 0.972, Confidence.HIGH)])

    assert len(actions) == 1
    assert actions[0].action is MergeDecision.MERGE
    assert actions[0].reason == "Alta confiança de duplicata (97.2%)"


def test_medium_confidence_asks_for_review() -> None:
    actions = suggest_merge_actions([_match("Rua A 12", "Rua A 19", 0.925, Confidence.MEDIUM)])

    assert actions[0].action is MergeDecision.KEEP_SEPARATE
    assert actions[0].reason == "Confiança média (92.5%) - requer revisão manual"


def test_low_confidence_gets_no_action() -> None:
    assert suggest_merge_actions([_match("Curitiba", "Curitibo", 0.875, Confidence.LOW)]) == []


def test_one_action_per_unordered_pair() -> None:
    matches = [
        _match("A", "B", 0.97, Confidence.HIGH),
        _match("B", "A", 0.97, Confidence.HIGH),
        _match("A", "C", 0.91, Confidence.MEDIUM),
    ]

    actions = suggest_merge_actions(matches)

    assert [(a.original, a.duplicate) for a in actions] == [("A", "B"), ("A", "C")]


def test_actions_do_not_depend_on_match_order() -> None:
    matches = [
        _match("Curitiba", "curitiba.", 0.97, Confidence.HIGH),
        _match("curitiba.", "Curitiba", 0.97, Confidence.HIGH),
        _match("Ponta Grossa", "Ponta Grosso", 0.917, Confidence.MEDIUM),
        _match("Londrina", "Londrino", 0.875, Confidence.LOW),
    ]

    outcomes = {
        frozenset((a.action, a.original, a.duplicate) for a in suggest_merge_actions(list(order)))
        for order in permutations(matches)
    }

    assert outcomes == {
        frozenset(
            {
                (MergeDecision.MERGE, "Curitiba", "curitiba."),
                (MergeDecision.KEEP_SEPARATE, "Ponta Grossa", "Ponta Grosso"),
            }
        )
    }


def test_canonical_map_resolves_chains_to_first_original() -> None:
    matches = [
        _match("Curitiba", "Curitiba.", 0.96, Confidence.HIGH),
        _match("Curitiba.", "Curitiba..", 0.96, Confidence.HIGH),
        _match("Londrina", "Londrino", 0.91, Confidence.MEDIUM),
    ]

    assert build_canonical_map(matches) == {"Curitiba.": "Curitiba", "Curitiba..": "Curitiba"}


def test_review_merge_rewrites_stored_rows(fake_db) -> None:
    fake_db.rows("viagens").extend(
        [
            {"id": 1, "endereco": "Curitiba"},
            {"id": 2, "endereco": "curitiba"},
            {"id": 3, "endereco": "curitiba"},
            {"id": 4, "endereco": "Londrina"},
        ]
    )
    decisions = [
        ReviewDecision(original="Curitiba", duplicate="curitiba", action=ReviewAction.MERGE),
        ReviewDecision(original="Londrina", duplicate="Londrino", action=ReviewAction.SPLIT),
        ReviewDecision(original="Maringa", duplicate="Maringá", action=ReviewAction.IGNORE),
    ]

    result = review_duplicates(decisions)

    assert (result.merged, result.split, result.ignored) == (1, 1, 1)
    assert result.rows_updated == 2
    assert [row["endereco"] for row in fake_db.rows("viagens")] == ["Curitiba", "Curitiba", "Curitiba", "Londrina"]


def test_review_rejects_identical_pair(fake_db) -> None:
    result = review_duplicates(
        [ReviewDecision(original="Curitiba", duplicate=" Curitiba ", action=ReviewAction.MERGE)]
    )

    assert result.merged == 0
    assert len(result.errors) == 1
    assert result.errors[0]["error"] == "original and duplicate are the same address"


def test_review_merge_fails_without_storage(no_db) -> None:
    with pytest.raises(StorageUnavailableError):
        review_duplicates([ReviewDecision(original="A", duplicate="B", action=ReviewAction.MERGE)])


def test_review_split_and_ignore_do_not_touch_storage(no_db) -> None:
    result = review_duplicates(
        [
            ReviewDecision(original="A", duplicate="B", action=ReviewAction.SPLIT),
            ReviewDecision(original="C", duplicate="D", action=ReviewAction.IGNORE),
        ]
    )
    assert (result.split, result.ignored, result.rows_updated) == (1, 1, 0)


def test_row_ids_are_attached_from_stored_addresses(fake_db) -> None:
    fake_db.rows("viagens").extend(
        [
            {"id": 7, "endereco": "Curitiba"},
            {"id": 3, "endereco": "Curitiba"},
            {"id": 4, "endereco": "curitiba"},
            {"id": 9, "endereco": "curitiba"},
        ]
    )
    actions = suggest_merge_actions(
        [
            _match("Curitiba", "curitiba", 1.0, Confidence.HIGH),
            _match("Londrina", "Londrino", 0.91, Confidence.MEDIUM),
        ]
    )

    attach_row_ids(actions)

    assert (actions[0].original_id, actions[0].duplicate_ids) == (3, [4, 9])
    assert (actions[1].original_id, actions[1].duplicate_ids) == (None, [])


def test_row_ids_stay_empty_without_storage(no_db) -> None:
    actions = attach_row_ids(suggest_merge_actions([_match("Curitiba", "curitiba", 1.0, Confidence.HIGH)]))

    assert actions[0].original_id is None
    assert actions[0].duplicate_ids == []
