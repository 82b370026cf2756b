"""Optimized route endpoints: storage, building, lifecycle and versions."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, status

from ...models.domain import RouteStatus
from ...schemas.routes import (
    BuildRouteRequest,
    CreateVersionRequest,
    CreateVersionResponse,
    DraftRouteRequest,
    MessageResponse,
    OptimizeRouteRequest,
    OptimizeRouteResponse,
    RestoreVersionResponse,
    RouteBuildResponse,
    RouteDetailModel,
    RouteDetailResponse,
    RouteListResponse,
    RouteSummaryModel,
    RouteVersionModel,
    SaveRouteRequest,
    SaveRouteResponse,
    StatusChangeRequest,
    UpdateRouteRequest,
    VersionHistoryResponse,
)
from ...services.routing import service as route_service
from ...services.routing.builder import build_constraints, build_route
from .errors import http_error

router = APIRouter(prefix="/optimized-routes", tags=["optimized-routes"])


@router.post("", response_model=SaveRouteResponse, status_code=status.HTTP_201_CREATED)
def save_route(payload: SaveRouteRequest) -> SaveRouteResponse:
    try:
        route = route_service.save_route(
            payload.name,
            [point.to_stop() for point in payload.points],
            payload.original_distance,
            payload.optimized_distance,
            payload.algorithm,
            description=payload.description,
            iterations=payload.iterations,
            vehicle_id=payload.vehicle_id,
            driver_id=payload.driver_id,
            persist=payload.persist,
        )
    except Exception as exc:
        raise http_error(exc, "save route") from exc
    return SaveRouteResponse(route_id=route.id, message=f'Rota "{payload.name}" salva com sucesso!')


@router.post("/drafts", response_model=RouteDetailResponse, status_code=status.HTTP_201_CREATED)
def create_draft(payload: DraftRouteRequest) -> RouteDetailResponse:
    try:
        route = route_service.create_draft_route(
            payload.name,
            [stop.to_stop() for stop in payload.stops],
            description=payload.description,
            max_cluster_distance_km=payload.max_cluster_distance_km,
            max_route_minutes=payload.max_route_minutes,
            vehicle_id=payload.vehicle_id,
            driver_id=payload.driver_id,
        )
    except Exception as exc:
        raise http_error(exc, "create draft route") from exc
    return RouteDetailResponse(route=RouteDetailModel.from_route(route))


@router.post("/build", response_model=RouteBuildResponse, status_code=status.HTTP_200_OK)
def build(payload: BuildRouteRequest) -> RouteBuildResponse:
    """Cluster stops into embarkation points without storing anything."""
    try:
        constraints = build_constraints(
            max_cluster_distance_km=payload.max_cluster_distance_km,
            max_route_minutes=payload.max_route_minutes,
            max_stops_per_cluster=payload.max_stops_per_cluster,
        )
        result = build_route(
            [stop.to_stop() for stop in payload.stops],
            algorithm=payload.algorithm,
            constraints=constraints,
            leg_distances_km=payload.leg_distances_km,
        )
    except Exception as exc:
        raise http_error(exc, "build route") from exc
    return RouteBuildResponse.from_result(result)


@router.post("/{route_id}/optimize", response_model=OptimizeRouteResponse, status_code=status.HTTP_200_OK)
def optimize(route_id: int, payload: OptimizeRouteRequest) -> OptimizeRouteResponse:
    try:
        route, result, version = route_service.optimize_route(
            route_id,
            algorithm=payload.algorithm,
            max_cluster_distance_km=payload.max_cluster_distance_km,
            max_route_minutes=payload.max_route_minutes,
            max_stops_per_cluster=payload.max_stops_per_cluster,
            leg_distances_km=payload.leg_distances_km,
            persist=payload.persist,
        )
    except Exception as exc:
        raise http_error(exc, f"optimize route {route_id}") from exc
    return OptimizeRouteResponse(
        route=RouteDetailModel.from_route(route),
        result=RouteBuildResponse.from_result(result),
        version=version.version_number,
    )


@router.get("", response_model=RouteListResponse, status_code=status.HTTP_200_OK)
def list_routes(
    status_filter: Optional[RouteStatus] = Query(None, alias="status"),
    limit: int = Query(10, ge=1, le=200, alias="limite"),
    offset: int = Query(0, ge=0),
) -> RouteListResponse:
    try:
        routes = route_service.list_routes(status=status_filter, limit=limit, offset=offset)
    except Exception as exc:
        raise http_error(exc, "list routes") from exc
    return RouteListResponse(routes=[RouteSummaryModel.from_route(route) for route in routes])


@router.get("/{route_id}", response_model=RouteDetailResponse, status_code=status.HTTP_200_OK)
def get_route(route_id: int) -> RouteDetailResponse:
    try:
        route = route_service.get_route(route_id)
    except Exception as exc:
        raise http_error(exc, f"load route {route_id}") from exc
    return RouteDetailResponse(route=RouteDetailModel.from_route(route))


@router.patch("/{route_id}", response_model=RouteDetailResponse, status_code=status.HTTP_200_OK)
def update_route(route_id: int, payload: UpdateRouteRequest) -> RouteDetailResponse:
    try:
        route = route_service.update_route(route_id, name=payload.name, description=payload.description)
    except Exception as exc:
        raise http_error(exc, f"update route {route_id}") from exc
    return RouteDetailResponse(route=RouteDetailModel.from_route(route))


@router.post("/{route_id}/status", response_model=RouteDetailResponse, status_code=status.HTTP_200_OK)
def change_status(route_id: int, payload: StatusChangeRequest) -> RouteDetailResponse:
    try:
        route = route_service.change_status(route_id, payload.status)
    except Exception as exc:
        raise http_error(exc, f"change status of route {route_id}") from exc
    return RouteDetailResponse(route=RouteDetailModel.from_route(route))


@router.delete("/{route_id}", response_model=MessageResponse, status_code=status.HTTP_200_OK)
def delete_route(route_id: int) -> MessageResponse:
    try:
        route_service.delete_route(route_id)
    except Exception as exc:
        raise http_error(exc, f"delete route {route_id}") from exc
    return MessageResponse(message="Rota deletada com sucesso!")


@router.post("/{route_id}/versions", response_model=CreateVersionResponse, status_code=status.HTTP_201_CREATED)
def create_version(route_id: int, payload: CreateVersionRequest) -> CreateVersionResponse:
    try:
        version = route_service.save_version(
            route_id,
            payload.change_description,
            [point.to_stop() for point in payload.points],
            payload.total_distance,
            estimated_time=payload.estimated_time,
            savings=payload.savings,
        )
    except Exception as exc:
        raise http_error(exc, f"save version of route {route_id}") from exc
    return CreateVersionResponse(
        version=version.version_number,
        message=f"Versão {version.version_number} criada com sucesso!",
    )


@router.get("/{route_id}/versions", response_model=VersionHistoryResponse, status_code=status.HTTP_200_OK)
def version_history(route_id: int) -> VersionHistoryResponse:
    try:
        versions = route_service.get_version_history(route_id)
    except Exception as exc:
        raise http_error(exc, f"load version history of route {route_id}") from exc
    return VersionHistoryResponse(versions=[RouteVersionModel.from_version(version) for version in versions])


@router.post(
    "/{route_id}/versions/{version_number}/restore",
    response_model=RestoreVersionResponse,
    status_code=status.HTTP_200_OK,
)
def restore_version(route_id: int, version_number: int) -> RestoreVersionResponse:
    try:
        route, version = route_service.restore_version(route_id, version_number)
    except Exception as exc:
        raise http_error(exc, f"restore version {version_number} of route {route_id}") from exc
    return RestoreVersionResponse(
        route=RouteDetailModel.from_route(route),
        version=version.version_number,
        message=f"Versão {version_number} restaurada como versão {version.version_number}",
    )
