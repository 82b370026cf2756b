"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(slots=True)
class EmbarkationPoint:
    point_id: str
    name: str
    address: str
    latitude: Optional[float]
    longitude: Optional[float]
    sequence: int
    arrival_min: float
    distance_from_prev_km: float
    member_ids: List[str] = field(default_factory=list)


@dataclass(slots=True)
class BuilderConstraints:
    max_cluster_distance_km: float
    max_route_minutes: float
    max_stops_per_cluster: int
    adjacency_window: int
    average_speed_kmh: float


@dataclass(slots=True)
class RouteBuildResult:
    algorithm: str
    total_distance_km: float
    original_distance_km: float
    savings_km: float
    savings_percentage: float
    estimated_minutes: int
    points: List[EmbarkationPoint]
    constraint_violations: dict[str, float]
    metadata: dict
    iterations: int = 0
