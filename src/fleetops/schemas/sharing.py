"""Route sharing request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..models.domain import RouteShare, ShareStatus
from ..services.sharing import NavigationLinks, ShareStats


class ShareRouteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    driver_email: EmailStr = Field(..., alias="motoristaEmail")
    platform: Literal["whatsapp", "qrcode", "direct_link"] = Field(default="direct_link", alias="plataforma")


class ShareModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    route_id: int = Field(alias="rotaId")
    token: str
    driver_email: str = Field(alias="motoristaEmail")
    platform: str = Field(alias="plataforma")
    status: ShareStatus
    send_count: int = Field(alias="envios")
    view_count: int = Field(alias="visualizacoes")
    click_count: int = Field(alias="cliques")
    created_at: Optional[datetime] = Field(default=None, alias="dataCriacao")
    last_sent_at: Optional[datetime] = Field(default=None, alias="ultimoEnvio")
    responded_at: Optional[datetime] = Field(default=None, alias="dataResposta")

    @classmethod
    def from_share(cls, share: RouteShare) -> "ShareModel":
        return cls(
            id=share.id,
            route_id=share.route_id,
            token=share.token,
            driver_email=share.driver_email,
            platform=share.platform,
            status=share.status,
            send_count=share.send_count,
            view_count=share.view_count,
            click_count=share.click_count,
            created_at=share.created_at,
            last_sent_at=share.last_sent_at,
            responded_at=share.responded_at,
        )


class ShareRouteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(alias="mensagem")
    share_url: str = Field(alias="urlCompartilhada")
    token: str
    share: ShareModel = Field(alias="compartilhamento")


class ShareListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    shares: List[ShareModel] = Field(alias="compartilhamentos")


class RespondShareRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    accepted: bool = Field(..., alias="aceito")


class ShareEventRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event: Literal["view", "click"] = Field(..., alias="evento")


class ShareStatsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_shares: int = Field(alias="totalShares")
    total_views: int = Field(alias="totalViews")
    total_clicks: int = Field(alias="totalClicks")
    accepted: int
    declined: int
    pending: int
    acceptance_rate: float = Field(alias="acceptanceRate")
    average_response_time: float = Field(alias="averageResponseTime")
    by_platform: Dict[str, int] = Field(alias="byPlatform")

    @classmethod
    def from_stats(cls, stats: ShareStats) -> "ShareStatsResponse":
        return cls(
            total_shares=stats.total_shares,
            total_views=stats.total_views,
            total_clicks=stats.total_clicks,
            accepted=stats.accepted,
            declined=stats.declined,
            pending=stats.pending,
            acceptance_rate=stats.acceptance_rate,
            average_response_time=stats.average_response_minutes,
            by_platform=stats.by_platform,
        )


class NavigationLinksResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    waze_url: str = Field(alias="urlWaze")
    google_maps_url: str = Field(alias="urlGoogleMaps")
    origin: str = Field(alias="origem")
    destination: str = Field(alias="destino")
    waypoints: List[str]

    @classmethod
    def from_links(cls, links: NavigationLinks) -> "NavigationLinksResponse":
        return cls(
            waze_url=links.waze_url,
            google_maps_url=links.google_maps_url,
            origin=links.origin,
            destination=links.destination,
            waypoints=list(links.waypoints),
        )


class QRCodeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    qr_code_url: str = Field(alias="qrCodeUrl")
    share_url: str = Field(alias="urlCompartilhada")
