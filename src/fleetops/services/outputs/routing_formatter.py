"""Serializers for stored route outputs."""

from __future__ import annotations

import csv
import io
from dataclasses import asdict

from ...models.domain import Route
from ..routing.models import RouteBuildResult


def route_to_json(route: Route, result: RouteBuildResult | None = None) -> dict:
    payload = {
        "route_id": route.id,
        "name": route.name,
        "status": route.status.value,
        "algorithm": route.algorithm_used,
        "total_distance_km": route.total_distance,
        "original_distance_km": route.original_distance,
        "savings_km": route.savings,
        "savings_percentage": route.savings_percentage,
        "estimated_minutes": route.estimated_time,
        "points": [asdict(point) for point in route.points],
    }
    if result is not None:
        payload["constraint_violations"] = result.constraint_violations
        payload["metadata"] = result.metadata
    return payload


def route_to_csv(route: Route) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "route_id",
        "sequence",
        "name",
        "address",
        "latitude",
        "longitude",
        "arrival_time",
        "total_distance_km",
        "estimated_minutes",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for point in route.points:
        writer.writerow(
            {
                "route_id": route.id,
                "sequence": point.sequence_number,
                "name": point.name,
                "address": point.address,
                "latitude": point.latitude,
                "longitude": point.longitude,
                "arrival_time": point.arrival_time,
                "total_distance_km": route.total_distance,
                "estimated_minutes": route.estimated_time,
            }
        )
    return buffer.getvalue()
