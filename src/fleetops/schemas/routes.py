"""Optimized route request/response schemas.

Field names are English in Python and keep the dashboard's Portuguese keys
on the wire through aliases.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.domain import Route, RoutePoint, RouteStatus, RouteVersion, Stop
from ..services.routing.models import EmbarkationPoint, RouteBuildResult

Algorithm = Literal["sequencial", "nearest_neighbor", "genetic"]


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class StopModel(WireModel):
    id: str
    name: str = Field(..., alias="nome")
    address: str = Field(default="", alias="endereco")
    latitude: Optional[float] = Field(default=None, ge=-90, le=90, alias="lat")
    longitude: Optional[float] = Field(default=None, ge=-180, le=180, alias="lng")
    arrival_time: Optional[str] = Field(default=None, alias="horario")
    zip_code: Optional[str] = Field(default=None, alias="cep")
    city: Optional[str] = Field(default=None, alias="cidade")

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    def to_stop(self) -> Stop:
        return Stop(
            id=self.id,
            name=self.name,
            address=self.address,
            latitude=self.latitude,
            longitude=self.longitude,
            arrival_time=self.arrival_time,
            zip_code=self.zip_code,
            city=self.city,
        )

    @classmethod
    def from_stop(cls, stop: Stop) -> "StopModel":
        return cls(
            id=stop.id,
            name=stop.name,
            address=stop.address,
            latitude=stop.latitude,
            longitude=stop.longitude,
            arrival_time=stop.arrival_time,
            zip_code=stop.zip_code,
            city=stop.city,
        )


class SaveRouteRequest(WireModel):
    name: str = Field(..., min_length=3, alias="nome")
    description: Optional[str] = Field(default=None, alias="descricao")
    points: List[StopModel] = Field(..., min_length=1, alias="pontos")
    original_distance: float = Field(..., ge=0, alias="distanciaOriginal")
    optimized_distance: float = Field(..., ge=0, alias="distanciaOtimizada")
    algorithm: Algorithm = Field(..., alias="algoritmo")
    iterations: Optional[int] = Field(default=None, ge=1, alias="iteracoes")
    vehicle_id: Optional[int] = Field(default=None, alias="veiculoId")
    driver_id: Optional[int] = Field(default=None, alias="motoristaId")
    persist: bool = False


class SaveRouteResponse(WireModel):
    success: bool = Field(default=True, alias="sucesso")
    route_id: int = Field(alias="rotaId")
    message: str = Field(alias="mensagem")


class BuilderOptions(WireModel):
    algorithm: Algorithm = Field(default="nearest_neighbor", alias="algoritmo")
    max_cluster_distance_km: Optional[float] = Field(default=None, gt=0, alias="distanciaMaximaCluster")
    max_route_minutes: Optional[int] = Field(default=None, ge=1, alias="tempoMaximoRota")
    max_stops_per_cluster: Optional[int] = Field(default=None, ge=1, alias="maxPontosPorCluster")
    leg_distances_km: Optional[List[float]] = Field(default=None, alias="distanciasTrechos")

    @field_validator("leg_distances_km")
    @classmethod
    def _non_negative_legs(cls, value: Optional[List[float]]) -> Optional[List[float]]:
        if value is not None and any(leg < 0 for leg in value):
            raise ValueError("leg distances must not be negative")
        return value


class BuildRouteRequest(BuilderOptions):
    stops: List[StopModel] = Field(..., min_length=1, alias="pontos")


class OptimizeRouteRequest(BuilderOptions):
    persist: bool = False


class DraftRouteRequest(WireModel):
    name: str = Field(..., min_length=3, alias="nome")
    description: Optional[str] = Field(default=None, alias="descricao")
    stops: List[StopModel] = Field(..., min_length=1, alias="pontos")
    max_cluster_distance_km: Optional[float] = Field(default=None, gt=0, alias="distanciaMaximaCluster")
    max_route_minutes: Optional[int] = Field(default=None, ge=1, alias="tempoMaximoRota")
    vehicle_id: Optional[int] = Field(default=None, alias="veiculoId")
    driver_id: Optional[int] = Field(default=None, alias="motoristaId")


class EmbarkationPointModel(WireModel):
    id: str
    name: str = Field(alias="nome")
    address: str = Field(alias="endereco")
    latitude: Optional[float] = Field(alias="lat")
    longitude: Optional[float] = Field(alias="lng")
    sequence: int = Field(alias="sequencia")
    arrival_min: float = Field(alias="minutoChegada")
    distance_from_prev_km: float = Field(alias="distanciaAnteriorKm")
    member_ids: List[str] = Field(alias="membros")

    @classmethod
    def from_point(cls, point: EmbarkationPoint) -> "EmbarkationPointModel":
        return cls(
            id=point.point_id,
            name=point.name,
            address=point.address,
            latitude=point.latitude,
            longitude=point.longitude,
            sequence=point.sequence,
            arrival_min=point.arrival_min,
            distance_from_prev_km=point.distance_from_prev_km,
            member_ids=list(point.member_ids),
        )


class RouteBuildResponse(WireModel):
    algorithm: str = Field(alias="algoritmo")
    total_distance: float = Field(alias="distanciaTotal")
    original_distance: float = Field(alias="distanciaOriginal")
    savings: float = Field(alias="economia")
    savings_percentage: float = Field(alias="percentualEconomia")
    estimated_time: int = Field(alias="tempoEstimado")
    points: List[EmbarkationPointModel] = Field(alias="pontosEmbarque")
    iterations: int = Field(alias="iteracoes")
    constraint_violations: Dict[str, float] = Field(alias="violacoes")
    metadata: dict

    @classmethod
    def from_result(cls, result: RouteBuildResult) -> "RouteBuildResponse":
        return cls(
            algorithm=result.algorithm,
            total_distance=result.total_distance_km,
            original_distance=result.original_distance_km,
            savings=result.savings_km,
            savings_percentage=result.savings_percentage,
            estimated_time=result.estimated_minutes,
            points=[EmbarkationPointModel.from_point(point) for point in result.points],
            iterations=result.iterations,
            constraint_violations=result.constraint_violations,
            metadata=result.metadata,
        )


class RoutePointModel(WireModel):
    id: str
    name: str = Field(alias="nome")
    address: str = Field(alias="endereco")
    sequence_number: int = Field(alias="sequencia")
    latitude: Optional[float] = Field(alias="lat")
    longitude: Optional[float] = Field(alias="lng")
    arrival_time: Optional[str] = Field(alias="horaChegada")

    @classmethod
    def from_point(cls, point: RoutePoint) -> "RoutePointModel":
        return cls(
            id=str(point.id),
            name=point.name,
            address=point.address,
            sequence_number=point.sequence_number,
            latitude=point.latitude,
            longitude=point.longitude,
            arrival_time=point.arrival_time,
        )


class RouteSummaryModel(WireModel):
    id: int
    name: str = Field(alias="nome")
    description: Optional[str] = Field(default=None, alias="descricao")
    status: RouteStatus
    total_distance: float = Field(alias="distancia")
    original_distance: float = Field(alias="distanciaOriginal")
    savings: float = Field(alias="economia")
    savings_percentage: float = Field(alias="percentualEconomia")
    estimated_time: Optional[int] = Field(default=None, alias="tempoEstimado")
    algorithm: Optional[str] = Field(default=None, alias="algoritmo")
    iterations: int = Field(default=1, alias="iteracoes")
    vehicle_id: Optional[int] = Field(default=None, alias="veiculoId")
    driver_id: Optional[int] = Field(default=None, alias="motoristaId")
    created_at: Optional[datetime] = Field(default=None, alias="dataCriacao")
    updated_at: Optional[datetime] = Field(default=None, alias="dataAtualizacao")

    @classmethod
    def _fields_from_route(cls, route: Route) -> dict:
        return {
            "id": route.id,
            "name": route.name,
            "description": route.description,
            "status": route.status,
            "total_distance": route.total_distance,
            "original_distance": route.original_distance or 0.0,
            "savings": route.savings or 0.0,
            "savings_percentage": route.savings_percentage or 0.0,
            "estimated_time": route.estimated_time,
            "algorithm": route.algorithm_used,
            "iterations": route.iterations,
            "vehicle_id": route.vehicle_id,
            "driver_id": route.driver_id,
            "created_at": route.created_at,
            "updated_at": route.updated_at,
        }

    @classmethod
    def from_route(cls, route: Route) -> "RouteSummaryModel":
        return cls(**cls._fields_from_route(route))


class RouteDetailModel(RouteSummaryModel):
    points: List[RoutePointModel] = Field(default_factory=list, alias="pontos")
    stops: List[StopModel] = Field(default_factory=list, alias="paradas")

    @classmethod
    def from_route(cls, route: Route) -> "RouteDetailModel":
        return cls(
            **cls._fields_from_route(route),
            points=[RoutePointModel.from_point(point) for point in route.points],
            stops=[StopModel.from_stop(stop) for stop in route.stops],
        )


class RouteListResponse(WireModel):
    success: bool = Field(default=True, alias="sucesso")
    routes: List[RouteSummaryModel] = Field(alias="rotas")


class RouteDetailResponse(WireModel):
    success: bool = Field(default=True, alias="sucesso")
    route: RouteDetailModel = Field(alias="rota")


class OptimizeRouteResponse(WireModel):
    success: bool = Field(default=True, alias="sucesso")
    route: RouteDetailModel = Field(alias="rota")
    result: RouteBuildResponse = Field(alias="resultado")
    version: int = Field(alias="versao")


class UpdateRouteRequest(WireModel):
    name: Optional[str] = Field(default=None, min_length=3, alias="nome")
    description: Optional[str] = Field(default=None, alias="descricao")


class StatusChangeRequest(WireModel):
    status: RouteStatus


class MessageResponse(WireModel):
    success: bool = Field(default=True, alias="sucesso")
    message: str = Field(alias="mensagem")


class CreateVersionRequest(WireModel):
    change_description: str = Field(..., min_length=1, alias="descricaoMudanca")
    points: List[StopModel] = Field(..., alias="pontos")
    total_distance: float = Field(..., ge=0, alias="distancia")
    savings: Optional[float] = Field(default=None, alias="economia")
    estimated_time: Optional[int] = Field(default=None, ge=0, alias="tempoEstimado")


class CreateVersionResponse(WireModel):
    success: bool = Field(default=True, alias="sucesso")
    version: int = Field(alias="versao")
    message: str = Field(alias="mensagem")


class RouteVersionModel(WireModel):
    version: int = Field(alias="versao")
    total_distance: float = Field(alias="distancia")
    savings: float = Field(alias="economia")
    savings_percentage: float = Field(alias="percentualEconomia")
    estimated_time: Optional[int] = Field(default=None, alias="tempoEstimado")
    change_description: str = Field(alias="descricaoMudanca")
    points: List[StopModel] = Field(default_factory=list, alias="pontos")
    created_at: Optional[datetime] = Field(default=None, alias="dataCriacao")

    @classmethod
    def from_version(cls, version: RouteVersion) -> "RouteVersionModel":
        return cls(
            version=version.version_number,
            total_distance=version.total_distance,
            savings=version.savings or 0.0,
            savings_percentage=version.savings_percentage or 0.0,
            estimated_time=version.estimated_time,
            change_description=version.change_description,
            points=[StopModel.from_stop(point) for point in version.points],
            created_at=version.created_at,
        )


class VersionHistoryResponse(WireModel):
    success: bool = Field(default=True, alias="sucesso")
    versions: List[RouteVersionModel] = Field(alias="versoes")


class RestoreVersionResponse(WireModel):
    success: bool = Field(default=True, alias="sucesso")
    route: RouteDetailModel = Field(alias="rota")
    version: int = Field(alias="versao")
    message: str = Field(alias="mensagem")
