"""Route sharing endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, status

from ...schemas.sharing import (
    NavigationLinksResponse,
    QRCodeResponse,
    RespondShareRequest,
    ShareEventRequest,
    ShareListResponse,
    ShareModel,
    ShareRouteRequest,
    ShareRouteResponse,
    ShareStatsResponse,
)
from ...services import sharing
from .errors import http_error

router = APIRouter(tags=["sharing"])


@router.post(
    "/optimized-routes/{route_id}/shares",
    response_model=ShareRouteResponse,
    status_code=status.HTTP_201_CREATED,
)
def share_route(route_id: int, payload: ShareRouteRequest) -> ShareRouteResponse:
    try:
        share, url = sharing.share_route(route_id, payload.driver_email, payload.platform)
    except Exception as exc:
        raise http_error(exc, f"share route {route_id}") from exc
    return ShareRouteResponse(
        message="Rota compartilhada com sucesso!",
        share_url=url,
        token=share.token,
        share=ShareModel.from_share(share),
    )


@router.get("/optimized-routes/{route_id}/shares", response_model=ShareListResponse, status_code=status.HTTP_200_OK)
def list_shares(route_id: int) -> ShareListResponse:
    try:
        shares = sharing.list_shares(route_id)
    except Exception as exc:
        raise http_error(exc, f"list shares of route {route_id}") from exc
    return ShareListResponse(shares=[ShareModel.from_share(share) for share in shares])


@router.get(
    "/optimized-routes/{route_id}/shares/stats",
    response_model=ShareStatsResponse,
    status_code=status.HTTP_200_OK,
)
def share_stats(route_id: int) -> ShareStatsResponse:
    try:
        stats = sharing.get_share_stats(route_id)
    except Exception as exc:
        raise http_error(exc, f"compute share statistics of route {route_id}") from exc
    return ShareStatsResponse.from_stats(stats)


@router.get("/optimized-routes/{route_id}/links", response_model=NavigationLinksResponse, status_code=status.HTTP_200_OK)
def navigation_links(route_id: int) -> NavigationLinksResponse:
    try:
        links = sharing.build_navigation_links(route_id)
    except Exception as exc:
        raise http_error(exc, f"build navigation links of route {route_id}") from exc
    return NavigationLinksResponse.from_links(links)


@router.get("/optimized-routes/{route_id}/qrcode", response_model=QRCodeResponse, status_code=status.HTTP_200_OK)
def qr_code(route_id: int, token: Optional[str] = Query(None)) -> QRCodeResponse:
    try:
        qr_url, url = sharing.build_qr_code(route_id, token)
    except Exception as exc:
        raise http_error(exc, f"build QR code of route {route_id}") from exc
    return QRCodeResponse(qr_code_url=qr_url, share_url=url)


@router.post("/shares/{token}/resend", response_model=ShareRouteResponse, status_code=status.HTTP_200_OK)
def resend(token: str) -> ShareRouteResponse:
    try:
        share, url = sharing.resend_share(token)
    except Exception as exc:
        raise http_error(exc, "resend route share") from exc
    return ShareRouteResponse(
        message=f"Rota reenviada ({share.send_count} envios)",
        share_url=url,
        token=share.token,
        share=ShareModel.from_share(share),
    )


@router.post("/shares/{token}/respond", response_model=ShareModel, status_code=status.HTTP_200_OK)
def respond(token: str, payload: RespondShareRequest) -> ShareModel:
    try:
        share = sharing.respond_to_share(token, payload.accepted)
    except Exception as exc:
        raise http_error(exc, "record driver response") from exc
    return ShareModel.from_share(share)


@router.post("/shares/{token}/events", response_model=ShareModel, status_code=status.HTTP_200_OK)
def record_event(token: str, payload: ShareEventRequest) -> ShareModel:
    try:
        share = sharing.record_share_event(token, payload.event)
    except Exception as exc:
        raise http_error(exc, "record share event") from exc
    return ShareModel.from_share(share)
