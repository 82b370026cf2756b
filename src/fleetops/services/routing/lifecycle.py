"""Route status transitions and savings arithmetic."""

from __future__ import annotations

import math

from ...config import settings
from ...models.domain import RouteStatus

TERMINAL_STATUSES = frozenset({RouteStatus.COMPLETED, RouteStatus.CANCELLED})

_FORWARD_TRANSITIONS: dict[RouteStatus, frozenset[RouteStatus]] = {
    RouteStatus.DRAFT: frozenset({RouteStatus.OPTIMIZED}),
    RouteStatus.OPTIMIZED: frozenset({RouteStatus.ACTIVE}),
    RouteStatus.ACTIVE: frozenset({RouteStatus.COMPLETED}),
}


class InvalidStatusTransition(ValueError):
    def __init__(self, current: RouteStatus, target: RouteStatus, message: str | None = None) -> None:
        super().__init__(message or f"Cannot move route from '{current.value}' to '{target.value}'")
        self.current = current
        self.target = target


def can_transition(current: RouteStatus, target: RouteStatus) -> bool:
    if current in TERMINAL_STATUSES:
        return False
    if target is RouteStatus.CANCELLED:
        return True
    return target in _FORWARD_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: RouteStatus, target: RouteStatus) -> RouteStatus:
    """Return ``target`` if the lifecycle allows it, otherwise raise InvalidStatusTransition."""
    if not can_transition(current, target):
        raise InvalidStatusTransition(current, target)
    return target


def ensure_editable(current: RouteStatus) -> None:
    """Completed and cancelled routes keep their points and metrics frozen."""
    if current in TERMINAL_STATUSES:
        raise InvalidStatusTransition(current, current, f"Route is '{current.value}' and can no longer be changed")


def compute_savings(original_distance: float, optimized_distance: float) -> tuple[float, float]:
    """Return (savings, savings percentage); the percentage is 0 when there is no baseline."""
    savings = original_distance - optimized_distance
    if original_distance == 0:
        return savings, 0.0
    return savings, savings / original_distance * 100


def estimate_minutes(distance_km: float, average_speed_kmh: float | None = None) -> int:
    speed = average_speed_kmh or settings.average_speed_kmh
    return math.ceil(distance_km * 60 / speed)
