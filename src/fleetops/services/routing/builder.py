"""Group rider stops into embarkation points and sequence them into a route.

Clustering is greedy and single-pass: the first stop not yet assigned becomes
a cluster center and pulls in the closest unassigned stops that lie within the
walking-distance threshold, up to the per-cluster stop limit. The embarkation
point sits on the center stop, so no member walks further than the threshold.
Stops that carry no coordinates cannot be measured, so they are grouped by
list position instead (the adjacency window).

Clusters are then visited once each, either in formation order (``sequencial``)
or by a greedy nearest-neighbor pass from the first cluster followed by 2-opt
segment reversal. ``genetic`` is accepted as an audit label and sequenced the
same way as ``nearest_neighbor``.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from ...config import settings
from ...models.domain import Stop
from ..geospatial import haversine_km, haversine_matrix_km
from .lifecycle import compute_savings, estimate_minutes
from .models import BuilderConstraints, EmbarkationPoint, RouteBuildResult

logger = logging.getLogger(__name__)

ALGORITHMS = ("sequencial", "nearest_neighbor", "genetic")
MAX_TWO_OPT_PASSES = 1000
IMPROVEMENT_EPSILON_KM = 1e-9


def build_constraints(
    max_cluster_distance_km: float | None = None,
    max_route_minutes: float | None = None,
    max_stops_per_cluster: int | None = None,
) -> BuilderConstraints:
    constraints = BuilderConstraints(
        max_cluster_distance_km=max_cluster_distance_km
        if max_cluster_distance_km is not None
        else settings.cluster_max_distance_km,
        max_route_minutes=max_route_minutes if max_route_minutes is not None else settings.max_route_duration_minutes,
        max_stops_per_cluster=max_stops_per_cluster if max_stops_per_cluster is not None else settings.cluster_max_stops,
        adjacency_window=settings.cluster_adjacency_window,
        average_speed_kmh=settings.average_speed_kmh,
    )
    if constraints.max_cluster_distance_km <= 0:
        raise ValueError("max_cluster_distance_km must be greater than 0")
    if constraints.max_route_minutes <= 0:
        raise ValueError("max_route_minutes must be greater than 0")
    if constraints.max_stops_per_cluster < 1:
        raise ValueError("max_stops_per_cluster must be at least 1")
    return constraints


def _cluster_stops(stops: Sequence[Stop], constraints: BuilderConstraints) -> list[list[int]]:
    remaining = list(range(len(stops)))
    clusters: list[list[int]] = []
    limit = constraints.max_stops_per_cluster - 1

    while remaining:
        center_idx = remaining.pop(0)
        center = stops[center_idx]

        if center.has_coordinates:
            candidates: list[tuple[float, int]] = []
            for idx in remaining:
                stop = stops[idx]
                if not stop.has_coordinates:
                    continue
                distance = haversine_km(center.latitude, center.longitude, stop.latitude, stop.longitude)
                if distance <= constraints.max_cluster_distance_km:
                    candidates.append((distance, idx))
            candidates.sort()
            picked = [idx for _, idx in candidates[:limit]]
        else:
            picked = [
                idx
                for idx in remaining
                if not stops[idx].has_coordinates and idx - center_idx <= constraints.adjacency_window
            ][:limit]

        picked_set = set(picked)
        remaining = [idx for idx in remaining if idx not in picked_set]
        clusters.append([center_idx, *sorted(picked)])
    return clusters


def _cluster_location(center: Stop) -> tuple[float, float] | None:
    # Members are only admitted within walking distance of the center stop.
    if not center.has_coordinates:
        return None
    return (center.latitude, center.longitude)


def _nearest_neighbor_order(locations: Sequence[tuple[float, float] | None]) -> list[int]:
    count = len(locations)
    located = [idx for idx, location in enumerate(locations) if location is not None]
    matrix = np.full((count, count), np.inf)
    if located:
        sub_matrix = haversine_matrix_km([locations[idx] for idx in located])
        matrix[np.ix_(located, located)] = sub_matrix

    order = [0]
    visited = {0}
    current = 0
    while len(order) < count:
        # Ties (including unreachable clusters at inf) resolve to formation order.
        candidates = [idx for idx in range(count) if idx not in visited]
        current = min(candidates, key=lambda idx: (matrix[current, idx], idx))
        order.append(current)
        visited.add(current)
    return order


def _two_opt(
    order: Sequence[int],
    locations: Sequence[tuple[float, float] | None],
    max_passes: int = MAX_TWO_OPT_PASSES,
) -> tuple[list[int], int]:
    """Reverse segments of the located clusters while that shortens the path.

    The path is open and keeps its first cluster. Unlocated clusters hold
    their slots in ``order``. Returns the new order and the number of passes,
    counting the final pass that found no improvement.
    """
    slots = [position for position, idx in enumerate(order) if locations[idx] is not None]
    path = [order[position] for position in slots]
    if len(path) < 3:
        return list(order), 0

    passes = 0
    improved = True
    while improved and passes < max_passes:
        improved = False
        passes += 1
        for i in range(len(path) - 2):
            for j in range(i + 2, len(path)):
                following = locations[path[j + 1]] if j + 1 < len(path) else None
                before = _leg_km(locations[path[i]], locations[path[i + 1]]) + _leg_km(locations[path[j]], following)
                after = _leg_km(locations[path[i]], locations[path[j]]) + _leg_km(locations[path[i + 1]], following)
                if after < before - IMPROVEMENT_EPSILON_KM:
                    path[i + 1 : j + 1] = path[i + 1 : j + 1][::-1]
                    improved = True
                    break
            if improved:
                break

    improved_order = list(order)
    for position, idx in zip(slots, path):
        improved_order[position] = idx
    return improved_order, passes


def _leg_km(start: tuple[float, float] | None, end: tuple[float, float] | None) -> float:
    if start is None or end is None:
        return 0.0
    return haversine_km(start[0], start[1], end[0], end[1])


def _original_distance(stops: Sequence[Stop], leg_distances_km: Sequence[float] | None) -> float:
    if leg_distances_km is not None:
        if len(leg_distances_km) != max(len(stops) - 1, 0):
            raise ValueError(
                f"Expected {max(len(stops) - 1, 0)} leg distances for {len(stops)} stops, got {len(leg_distances_km)}"
            )
        return float(sum(leg_distances_km))

    located = [(stop.latitude, stop.longitude) for stop in stops if stop.has_coordinates]
    return sum(_leg_km(located[i - 1], located[i]) for i in range(1, len(located)))


def build_route(
    stops: Sequence[Stop],
    *,
    algorithm: str = "nearest_neighbor",
    constraints: BuilderConstraints | None = None,
    leg_distances_km: Sequence[float] | None = None,
) -> RouteBuildResult:
    """Cluster ``stops`` into embarkation points and compute route metrics.

    Args:
        stops: Rider stops in their original visiting order.
        algorithm: One of ``ALGORITHMS``; recorded on the result for audit.
        constraints: Builder thresholds; defaults come from settings.
        leg_distances_km: Distances between consecutive ``stops`` supplied by
            an upstream source. When given they replace Haversine for the
            original-route distance.
    """
    if not stops:
        raise ValueError("At least one stop is required to build a route.")
    if algorithm not in ALGORITHMS:
        raise ValueError(f"Unknown algorithm '{algorithm}'. Expected one of: {', '.join(ALGORITHMS)}")
    constraints = constraints or build_constraints()

    clusters = _cluster_stops(stops, constraints)
    locations = [_cluster_location(stops[members[0]]) for members in clusters]

    iterations = 0
    if algorithm == "sequencial":
        order = list(range(len(clusters)))
    else:
        order, iterations = _two_opt(_nearest_neighbor_order(locations), locations)

    points: list[EmbarkationPoint] = []
    total_distance = 0.0
    previous_location: tuple[float, float] | None = None
    for sequence, cluster_idx in enumerate(order, start=1):
        members = clusters[cluster_idx]
        center = stops[members[0]]
        location = locations[cluster_idx]
        leg = _leg_km(previous_location, location) if sequence > 1 else 0.0
        total_distance += leg
        points.append(
            EmbarkationPoint(
                point_id=str(sequence),
                name=f"Ponto {sequence}",
                address=center.address,
                latitude=location[0] if location else None,
                longitude=location[1] if location else None,
                sequence=sequence,
                arrival_min=total_distance * 60 / constraints.average_speed_kmh,
                distance_from_prev_km=leg,
                member_ids=[stops[idx].id for idx in members],
            )
        )
        if location is not None:
            previous_location = location

    original_distance = _original_distance(stops, leg_distances_km)
    savings, savings_percentage = compute_savings(original_distance, total_distance)
    estimated = estimate_minutes(total_distance, constraints.average_speed_kmh)

    violations: dict[str, float] = {}
    if estimated > constraints.max_route_minutes:
        violations["max_route_minutes"] = float(estimated - constraints.max_route_minutes)
        logger.warning(
            f"Route estimate of {estimated} min exceeds the {constraints.max_route_minutes} min limit"
        )

    unlocated = sum(1 for stop in stops if not stop.has_coordinates)
    metadata = {
        "stop_count": len(stops),
        "cluster_count": len(clusters),
        "unlocated_stops": unlocated,
        "ordering": "input_order" if algorithm == "sequencial" else "nearest_neighbor_2opt",
        "two_opt_passes": iterations,
        "distance_source": "provided" if leg_distances_km is not None else "haversine",
        "max_cluster_distance_km": constraints.max_cluster_distance_km,
        "max_stops_per_cluster": constraints.max_stops_per_cluster,
    }
    return RouteBuildResult(
        algorithm=algorithm,
        total_distance_km=total_distance,
        original_distance_km=original_distance,
        savings_km=savings,
        savings_percentage=savings_percentage,
        estimated_minutes=estimated,
        points=points,
        constraint_violations=violations,
        metadata=metadata,
        iterations=iterations,
    )
