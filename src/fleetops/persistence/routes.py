"""Database persistence for optimized routes, their points and versions."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Sequence

from ..db.supabase import execute_query, require_client
from ..models.domain import Route, RoutePoint, RouteStatus, RouteVersion, Stop
from .errors import RecordNotFoundError, StorageUnavailableError

logger = logging.getLogger(__name__)

ROUTES_TABLE = "optimized_routes"
POINTS_TABLE = "embarque_points"
VERSIONS_TABLE = "route_version_history"
SHARES_TABLE = "route_shares"


def parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _optional_float(value: Any) -> float | None:
    return float(value) if value is not None else None


def _optional_int(value: Any) -> int | None:
    return int(value) if value is not None else None


def stop_to_row(stop: Stop) -> dict[str, Any]:
    return {
        "id": stop.id,
        "name": stop.name,
        "address": stop.address,
        "latitude": stop.latitude,
        "longitude": stop.longitude,
        "arrival_time": stop.arrival_time,
        "zip_code": stop.zip_code,
        "city": stop.city,
    }


def stop_from_row(row: dict[str, Any]) -> Stop:
    return Stop(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        address=str(row.get("address") or ""),
        latitude=_optional_float(row.get("latitude")),
        longitude=_optional_float(row.get("longitude")),
        arrival_time=row.get("arrival_time"),
        zip_code=row.get("zip_code"),
        city=row.get("city"),
    )


def _point_from_row(row: dict[str, Any]) -> RoutePoint:
    return RoutePoint(
        id=int(row["id"]),
        route_id=int(row["route_id"]),
        name=str(row.get("name") or ""),
        address=str(row.get("address") or ""),
        sequence_number=int(row["sequence_number"]),
        latitude=_optional_float(row.get("latitude")),
        longitude=_optional_float(row.get("longitude")),
        arrival_time=row.get("arrival_time"),
    )


def _route_from_row(row: dict[str, Any], points: Sequence[RoutePoint] = ()) -> Route:
    return Route(
        id=int(row["id"]),
        name=str(row["name"]),
        status=RouteStatus(row.get("status") or RouteStatus.DRAFT.value),
        total_distance=float(row.get("total_distance") or 0.0),
        description=row.get("description"),
        estimated_time=_optional_int(row.get("estimated_time")),
        original_distance=_optional_float(row.get("original_distance")),
        savings=_optional_float(row.get("savings")),
        savings_percentage=_optional_float(row.get("savings_percentage")),
        algorithm_used=row.get("algorithm_used"),
        iterations=int(row.get("iterations") or 1),
        vehicle_id=_optional_int(row.get("vehicle_id")),
        driver_id=_optional_int(row.get("driver_id")),
        max_cluster_distance_km=_optional_float(row.get("max_cluster_distance_km")),
        max_route_minutes=_optional_int(row.get("max_route_minutes")),
        stops=[stop_from_row(stop) for stop in row.get("stops") or []],
        points=list(points),
        created_at=parse_timestamp(row.get("created_at")),
        updated_at=parse_timestamp(row.get("updated_at")),
    )


def _version_from_row(row: dict[str, Any]) -> RouteVersion:
    return RouteVersion(
        id=int(row["id"]),
        route_id=int(row["route_id"]),
        version_number=int(row["version_number"]),
        total_distance=float(row.get("total_distance") or 0.0),
        estimated_time=_optional_int(row.get("estimated_time")),
        savings=_optional_float(row.get("savings")),
        savings_percentage=_optional_float(row.get("savings_percentage")),
        points=tuple(stop_from_row(point) for point in row.get("points") or []),
        change_description=str(row.get("change_description") or ""),
        created_at=parse_timestamp(row.get("created_at")),
    )


def _first_row(response: Any) -> dict[str, Any] | None:
    rows = response.data or []
    return rows[0] if rows else None


def insert_route(values: dict[str, Any]) -> Route:
    client = require_client()
    response = execute_query(client.table(ROUTES_TABLE).insert(values), f"insert route '{values.get('name')}'")
    row = _first_row(response)
    if row is None:
        raise RecordNotFoundError("Route", values.get("name"))
    return _route_from_row(row)


def fetch_route(route_id: int, *, with_points: bool = True) -> Route:
    """Load one route with its points ordered by sequence number.

    Raises:
        RecordNotFoundError: if no route has ``route_id``.
    """
    client = require_client()
    response = execute_query(
        client.table(ROUTES_TABLE).select("*").eq("id", route_id).limit(1),
        f"load route {route_id}",
    )
    row = _first_row(response)
    if row is None:
        raise RecordNotFoundError("Route", route_id)
    points = fetch_points(route_id) if with_points else []
    return _route_from_row(row, points)


def fetch_routes(status: RouteStatus | None = None, limit: int = 10, offset: int = 0) -> list[Route]:
    client = require_client()
    query = client.table(ROUTES_TABLE).select("*")
    if status is not None:
        query = query.eq("status", status.value)
    query = query.order("created_at", desc=True).range(offset, offset + limit - 1)
    response = execute_query(query, "list routes")
    return [_route_from_row(row) for row in response.data or []]


def update_route_row(route_id: int, values: dict[str, Any]) -> Route:
    client = require_client()
    response = execute_query(
        client.table(ROUTES_TABLE).update(values).eq("id", route_id),
        f"update route {route_id}",
    )
    row = _first_row(response)
    if row is None:
        raise RecordNotFoundError("Route", route_id)
    return _route_from_row(row, fetch_points(route_id))


def fetch_points(route_id: int) -> list[RoutePoint]:
    client = require_client()
    response = execute_query(
        client.table(POINTS_TABLE).select("*").eq("route_id", route_id).order("sequence_number"),
        f"load points of route {route_id}",
    )
    return [_point_from_row(row) for row in response.data or []]


def replace_points(route_id: int, stops: Sequence[Stop]) -> list[RoutePoint]:
    """Replace every point of ``route_id`` with ``stops`` numbered 1..n in list order.

    New rows are inserted before the old ones are removed, so a failed write
    leaves the previous points in place.
    """
    client = require_client()
    existing = execute_query(
        client.table(POINTS_TABLE).select("id").eq("route_id", route_id),
        f"load point ids of route {route_id}",
    )
    old_ids = [row["id"] for row in existing.data or []]

    points: list[RoutePoint] = []
    if stops:
        rows = [
            {
                "route_id": route_id,
                "name": stop.name,
                "address": stop.address,
                "latitude": stop.latitude,
                "longitude": stop.longitude,
                "arrival_time": stop.arrival_time,
                "sequence_number": sequence,
            }
            for sequence, stop in enumerate(stops, start=1)
        ]
        response = execute_query(client.table(POINTS_TABLE).insert(rows), f"insert points of route {route_id}")
        points = sorted((_point_from_row(row) for row in response.data or []), key=lambda point: point.sequence_number)

    if old_ids:
        try:
            execute_query(
                client.table(POINTS_TABLE).delete().in_("id", old_ids),
                f"clear previous points of route {route_id}",
            )
        except StorageUnavailableError:
            if points:
                delete_points(route_id, [point.id for point in points])
            raise
    logger.info(f"Stored {len(points)} point(s) for route {route_id}")
    return points


def delete_points(route_id: int, point_ids: Sequence[int]) -> None:
    client = require_client()
    execute_query(
        client.table(POINTS_TABLE).delete().in_("id", list(point_ids)),
        f"delete {len(point_ids)} point(s) of route {route_id}",
    )


def count_versions(route_id: int) -> int:
    client = require_client()
    response = execute_query(
        client.table(VERSIONS_TABLE).select("id", count="exact").eq("route_id", route_id),
        f"count versions of route {route_id}",
    )
    if response.count is not None:
        return int(response.count)
    return len(response.data or [])


def insert_version(values: dict[str, Any]) -> RouteVersion:
    client = require_client()
    response = execute_query(
        client.table(VERSIONS_TABLE).insert(values),
        f"insert version {values.get('version_number')} of route {values.get('route_id')}",
    )
    row = _first_row(response)
    if row is None:
        raise RecordNotFoundError("Route version", values.get("version_number"))
    return _version_from_row(row)


def fetch_versions(route_id: int) -> list[RouteVersion]:
    client = require_client()
    response = execute_query(
        client.table(VERSIONS_TABLE).select("*").eq("route_id", route_id).order("version_number", desc=True),
        f"load version history of route {route_id}",
    )
    return [_version_from_row(row) for row in response.data or []]


def fetch_version(route_id: int, version_number: int) -> RouteVersion:
    client = require_client()
    response = execute_query(
        client.table(VERSIONS_TABLE)
        .select("*")
        .eq("route_id", route_id)
        .eq("version_number", version_number)
        .limit(1),
        f"load version {version_number} of route {route_id}",
    )
    row = _first_row(response)
    if row is None:
        raise RecordNotFoundError("Route version", f"{route_id}/{version_number}")
    return _version_from_row(row)


def delete_route_cascade(route_id: int) -> None:
    """Delete a route together with its versions, shares and points."""
    client = require_client()
    fetch_route(route_id, with_points=False)

    for table in (VERSIONS_TABLE, SHARES_TABLE, POINTS_TABLE):
        execute_query(client.table(table).delete().eq("route_id", route_id), f"delete {table} of route {route_id}")
    delete_route_row(route_id)
    logger.info(f"Deleted route {route_id} with its versions, shares and points")


def delete_version(route_id: int, version_number: int) -> None:
    client = require_client()
    execute_query(
        client.table(VERSIONS_TABLE).delete().eq("route_id", route_id).eq("version_number", version_number),
        f"delete version {version_number} of route {route_id}",
    )


def delete_route_row(route_id: int) -> None:
    client = require_client()
    execute_query(client.table(ROUTES_TABLE).delete().eq("id", route_id), f"delete route {route_id}")
