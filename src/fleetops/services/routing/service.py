"""Route storage orchestration: saving, optimizing, versioning and lifecycle."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Sequence

from ...models.domain import Route, RoutePoint, RouteStatus, RouteVersion, Stop
from ...persistence import routes as route_store
from ...persistence.errors import StorageUnavailableError
from ...persistence.filesystem import FileStorage
from ...persistence.routes import stop_to_row
from ..outputs.routing_formatter import route_to_csv, route_to_json
from .builder import build_constraints, build_route
from .lifecycle import (
    InvalidStatusTransition,
    compute_savings,
    ensure_editable,
    ensure_transition,
    estimate_minutes,
)
from .models import EmbarkationPoint, RouteBuildResult

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _embarkation_to_stop(point: EmbarkationPoint) -> Stop:
    return Stop(
        id=point.point_id,
        name=point.name,
        address=point.address,
        latitude=point.latitude,
        longitude=point.longitude,
        arrival_time=f"+{round(point.arrival_min)} min",
    )


def _point_to_stop(point: RoutePoint) -> Stop:
    return Stop(
        id=str(point.id),
        name=point.name,
        address=point.address,
        latitude=point.latitude,
        longitude=point.longitude,
        arrival_time=point.arrival_time,
    )


def _version_values(
    route_id: int,
    version_number: int,
    change_description: str,
    points: Sequence[Stop],
    total_distance: float,
    estimated_time: int | None,
    savings: float | None,
) -> dict[str, Any]:
    # Percentage is taken against the pre-optimization distance (total + savings).
    savings_percentage = None
    if savings is not None:
        _, savings_percentage = compute_savings(total_distance + savings, total_distance)
    return {
        "route_id": route_id,
        "version_number": version_number,
        "total_distance": total_distance,
        "estimated_time": estimated_time if estimated_time is not None else estimate_minutes(total_distance),
        "savings": savings,
        "savings_percentage": savings_percentage,
        "points": [stop_to_row(point) for point in points],
        "change_description": change_description,
    }


def _commit_revision(
    route: Route,
    stops: Sequence[Stop],
    values: dict[str, Any],
    version_values: dict[str, Any],
) -> tuple[Route, RouteVersion]:
    """Record a version, then swap the route's points and update its row.

    ``route`` must be loaded with its points. Each write that fails undoes the
    ones before it, so the route keeps its previous points, metrics and
    version history.
    """
    version = route_store.insert_version(version_values)
    try:
        route_store.replace_points(route.id, stops)
        try:
            updated = route_store.update_route_row(route.id, values)
        except StorageUnavailableError:
            route_store.replace_points(route.id, [_point_to_stop(point) for point in route.points])
            raise
    except StorageUnavailableError:
        logger.warning(f"Rolling back version {version.version_number} of route {route.id}")
        route_store.delete_version(route.id, version.version_number)
        raise
    return updated, version


def export_route(route: Route, result: RouteBuildResult | None = None, storage: FileStorage | None = None):
    """Write ``summary.json`` and ``stops.csv`` for ``route`` into a fresh run directory."""
    storage = storage or FileStorage()
    run_dir = storage.make_run_directory(prefix=f"route_{route.id}")
    storage.write_json(run_dir / "summary.json", route_to_json(route, result))
    storage.write_csv(run_dir / "stops.csv", route_to_csv(route))
    logger.info(f"Exported route {route.id} to {run_dir}")
    return run_dir


def save_route(
    name: str,
    points: Sequence[Stop],
    original_distance: float,
    optimized_distance: float,
    algorithm: str,
    *,
    description: str | None = None,
    iterations: int | None = None,
    vehicle_id: int | None = None,
    driver_id: int | None = None,
    persist: bool = False,
) -> Route:
    """Store an already optimized route and its points numbered in list order."""
    savings, savings_percentage = compute_savings(original_distance, optimized_distance)
    route = route_store.insert_route(
        {
            "name": name,
            "description": description,
            "status": RouteStatus.OPTIMIZED.value,
            "total_distance": optimized_distance,
            "estimated_time": estimate_minutes(optimized_distance),
            "original_distance": original_distance,
            "savings": savings,
            "savings_percentage": savings_percentage,
            "algorithm_used": algorithm,
            "iterations": iterations or 1,
            "vehicle_id": vehicle_id,
            "driver_id": driver_id,
            "stops": [stop_to_row(stop) for stop in points],
        }
    )
    try:
        route.points = route_store.replace_points(route.id, points)
    except StorageUnavailableError:
        route_store.delete_route_row(route.id)
        raise
    logger.info(f"Saved route {route.id} '{name}' with {len(route.points)} point(s)")

    if persist:
        export_route(route)
    return route


def create_draft_route(
    name: str,
    stops: Sequence[Stop],
    *,
    description: str | None = None,
    max_cluster_distance_km: float | None = None,
    max_route_minutes: int | None = None,
    vehicle_id: int | None = None,
    driver_id: int | None = None,
) -> Route:
    if not stops:
        raise ValueError("A draft route needs at least one stop.")
    route = route_store.insert_route(
        {
            "name": name,
            "description": description,
            "status": RouteStatus.DRAFT.value,
            "total_distance": 0.0,
            "vehicle_id": vehicle_id,
            "driver_id": driver_id,
            "max_cluster_distance_km": max_cluster_distance_km,
            "max_route_minutes": max_route_minutes,
            "stops": [stop_to_row(stop) for stop in stops],
        }
    )
    logger.info(f"Created draft route {route.id} '{name}' with {len(stops)} stop(s)")
    return route


def optimize_route(
    route_id: int,
    *,
    algorithm: str = "nearest_neighbor",
    max_cluster_distance_km: float | None = None,
    max_route_minutes: int | None = None,
    max_stops_per_cluster: int | None = None,
    leg_distances_km: Sequence[float] | None = None,
    persist: bool = False,
) -> tuple[Route, RouteBuildResult, RouteVersion]:
    """Cluster a stored route's stops, replace its points and record a new version.

    Drafts move to ``optimized``; an already optimized route stays there and
    only gains a version. Nothing is written until the build succeeded and the
    next version number is known.
    """
    route = route_store.fetch_route(route_id)
    if route.status is RouteStatus.DRAFT:
        ensure_transition(route.status, RouteStatus.OPTIMIZED)
    elif route.status is not RouteStatus.OPTIMIZED:
        raise InvalidStatusTransition(route.status, RouteStatus.OPTIMIZED)
    if not route.stops:
        raise ValueError(f"Route {route_id} has no stops to optimize.")

    constraints = build_constraints(
        max_cluster_distance_km=max_cluster_distance_km or route.max_cluster_distance_km,
        max_route_minutes=max_route_minutes or route.max_route_minutes,
        max_stops_per_cluster=max_stops_per_cluster,
    )
    result = build_route(
        route.stops,
        algorithm=algorithm,
        constraints=constraints,
        leg_distances_km=leg_distances_km,
    )
    stops = [_embarkation_to_stop(point) for point in result.points]
    version_number = route_store.count_versions(route_id) + 1

    updated, version = _commit_revision(
        route,
        stops,
        {
            "status": RouteStatus.OPTIMIZED.value,
            "total_distance": result.total_distance_km,
            "original_distance": result.original_distance_km,
            "estimated_time": result.estimated_minutes,
            "savings": result.savings_km,
            "savings_percentage": result.savings_percentage,
            "algorithm_used": algorithm,
            "iterations": max(result.iterations, 1),
            "max_cluster_distance_km": constraints.max_cluster_distance_km,
            "max_route_minutes": int(constraints.max_route_minutes),
            "updated_at": _now(),
        },
        _version_values(
            route_id,
            version_number,
            f"Otimização ({algorithm}): {len(result.points)} ponto(s) de embarque",
            stops,
            result.total_distance_km,
            result.estimated_minutes,
            result.savings_km,
        ),
    )
    logger.info(
        f"Optimized route {route_id}: {result.original_distance_km:.2f} km -> {result.total_distance_km:.2f} km "
        f"({len(route.stops)} stops in {len(result.points)} points, {result.iterations} 2-opt passes)"
    )

    if persist:
        export_route(updated, result)
    return updated, result, version


def list_routes(status: RouteStatus | None = None, limit: int = 10, offset: int = 0) -> list[Route]:
    return route_store.fetch_routes(status=status, limit=limit, offset=offset)


def get_route(route_id: int) -> Route:
    return route_store.fetch_route(route_id)


def update_route(route_id: int, *, name: str | None = None, description: str | None = None) -> Route:
    values = {key: value for key, value in (("name", name), ("description", description)) if value is not None}
    if not values:
        return route_store.fetch_route(route_id)
    values["updated_at"] = _now()
    return route_store.update_route_row(route_id, values)


def change_status(route_id: int, target: RouteStatus) -> Route:
    route = route_store.fetch_route(route_id, with_points=False)
    ensure_transition(route.status, target)
    updated = route_store.update_route_row(route_id, {"status": target.value, "updated_at": _now()})
    logger.info(f"Route {route_id} moved from '{route.status.value}' to '{target.value}'")
    return updated


def delete_route(route_id: int) -> None:
    route_store.delete_route_cascade(route_id)


def save_version(
    route_id: int,
    change_description: str,
    points: Sequence[Stop],
    total_distance: float,
    *,
    estimated_time: int | None = None,
    savings: float | None = None,
) -> RouteVersion:
    """Append a snapshot numbered one past the route's current version count."""
    route_store.fetch_route(route_id, with_points=False)

    version_number = route_store.count_versions(route_id) + 1
    version = route_store.insert_version(
        _version_values(route_id, version_number, change_description, points, total_distance, estimated_time, savings)
    )
    logger.info(f"Saved version {version_number} of route {route_id}")
    return version


def get_version_history(route_id: int) -> list[RouteVersion]:
    route_store.fetch_route(route_id, with_points=False)
    return route_store.fetch_versions(route_id)


def restore_version(route_id: int, version_number: int) -> tuple[Route, RouteVersion]:
    """Copy a stored version's points and metrics back onto the route as a new version."""
    route = route_store.fetch_route(route_id)
    ensure_editable(route.status)
    source = route_store.fetch_version(route_id, version_number)
    next_number = route_store.count_versions(route_id) + 1

    values = {
        "total_distance": source.total_distance,
        "estimated_time": source.estimated_time,
        "savings": source.savings,
        "savings_percentage": source.savings_percentage,
        "updated_at": _now(),
    }
    if source.savings is not None:
        values["original_distance"] = source.total_distance + source.savings

    updated, version = _commit_revision(
        route,
        source.points,
        values,
        _version_values(
            route_id,
            next_number,
            f"Restaurada a partir da versão {version_number}",
            source.points,
            source.total_distance,
            source.estimated_time,
            source.savings,
        ),
    )
    logger.info(f"Restored route {route_id} to version {version_number} as version {next_number}")
    return updated, version
