"""Sharing routes with drivers: links, resends, responses and statistics."""

from __future__ import annotations

import logging
import secrets
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol
from urllib.parse import quote

from ...config import settings
from ...models.domain import RoutePoint, RouteShare, ShareStatus
from ...persistence import routes as route_store
from ...persistence import shares as share_store

logger = logging.getLogger(__name__)

PLATFORMS = ("whatsapp", "qrcode", "direct_link")
SHARE_EVENTS = {"view": "view_count", "click": "click_count"}


class ShareStateError(ValueError):
    """The share cannot accept the requested change in its current state."""


class Notifier(Protocol):
    def send(self, share: RouteShare, share_url: str) -> None: ...


class LoggingNotifier:
    """Records outgoing share messages in the log instead of delivering them."""

    def send(self, share: RouteShare, share_url: str) -> None:
        logger.info(
            f"Share of route {share.route_id} for {share.driver_email} via {share.platform} "
            f"(send #{share.send_count}): {share_url}"
        )


@dataclass(slots=True)
class NavigationLinks:
    waze_url: str
    google_maps_url: str
    origin: str
    destination: str
    waypoints: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ShareStats:
    total_shares: int
    total_views: int
    total_clicks: int
    accepted: int
    declined: int
    pending: int
    acceptance_rate: float
    average_response_minutes: float
    by_platform: dict[str, int]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def share_url(token: str) -> str:
    return f"{settings.share_base_url.rstrip('/')}/motorista/rota/{token}"


def share_route(
    route_id: int,
    driver_email: str,
    platform: str = "direct_link",
    notifier: Optional[Notifier] = None,
) -> tuple[RouteShare, str]:
    """Create a share token for ``route_id`` and notify the driver once."""
    if platform not in PLATFORMS:
        raise ValueError(f"Unknown platform '{platform}'. Expected one of: {', '.join(PLATFORMS)}")
    route_store.fetch_route(route_id, with_points=False)

    now = _now().isoformat()
    share = share_store.insert_share(
        {
            "route_id": route_id,
            "driver_email": driver_email,
            "platform": platform,
            "token": secrets.token_urlsafe(12),
            "status": ShareStatus.PENDING.value,
            "send_count": 1,
            "view_count": 0,
            "click_count": 0,
            "last_sent_at": now,
        }
    )
    url = share_url(share.token)
    (notifier or LoggingNotifier()).send(share, url)
    return share, url


def resend_share(token: str, notifier: Optional[Notifier] = None) -> tuple[RouteShare, str]:
    share = share_store.fetch_share(token)
    if share.status is not ShareStatus.PENDING:
        raise ShareStateError(f"Share already {share.status.value}; nothing to resend.")
    if share.send_count > settings.share_max_resends:
        raise ShareStateError(f"Share was already resent {settings.share_max_resends} time(s).")

    share = share_store.update_share(
        share.id,
        {"send_count": share.send_count + 1, "last_sent_at": _now().isoformat()},
    )
    url = share_url(share.token)
    (notifier or LoggingNotifier()).send(share, url)
    return share, url


def respond_to_share(token: str, accepted: bool) -> RouteShare:
    share = share_store.fetch_share(token)
    if share.status is not ShareStatus.PENDING:
        raise ShareStateError(f"Share was already {share.status.value}.")

    status = ShareStatus.ACCEPTED if accepted else ShareStatus.DECLINED
    updated = share_store.update_share(
        share.id,
        {"status": status.value, "responded_at": _now().isoformat()},
    )
    logger.info(f"Driver {share.driver_email} {status.value} route {share.route_id}")
    return updated


def record_share_event(token: str, event: str) -> RouteShare:
    column = SHARE_EVENTS.get(event)
    if column is None:
        raise ValueError(f"Unknown share event '{event}'. Expected one of: {', '.join(SHARE_EVENTS)}")
    share = share_store.fetch_share(token)
    return share_store.update_share(share.id, {column: getattr(share, column) + 1})


def list_shares(route_id: int) -> list[RouteShare]:
    route_store.fetch_route(route_id, with_points=False)
    return share_store.fetch_shares(route_id)


def get_share_stats(route_id: int) -> ShareStats:
    shares = list_shares(route_id)
    statuses = Counter(share.status for share in shares)

    response_minutes = [
        (share.responded_at - share.created_at).total_seconds() / 60
        for share in shares
        if share.responded_at is not None and share.created_at is not None
    ]
    total = len(shares)
    accepted = statuses[ShareStatus.ACCEPTED]
    return ShareStats(
        total_shares=total,
        total_views=sum(share.view_count for share in shares),
        total_clicks=sum(share.click_count for share in shares),
        accepted=accepted,
        declined=statuses[ShareStatus.DECLINED],
        pending=statuses[ShareStatus.PENDING],
        acceptance_rate=accepted / total * 100 if total else 0.0,
        average_response_minutes=sum(response_minutes) / len(response_minutes) if response_minutes else 0.0,
        by_platform=dict(Counter(share.platform for share in shares)),
    )


def _coordinate(point: RoutePoint) -> str:
    return f"{point.latitude},{point.longitude}"


def build_navigation_links(route_id: int) -> NavigationLinks:
    """Waze link to the final point and Google Maps directions through every point."""
    route = route_store.fetch_route(route_id)
    points = [point for point in route.points if point.latitude is not None and point.longitude is not None]
    if not points:
        raise ValueError(f"Route {route_id} has no points with coordinates.")

    origin = _coordinate(points[0])
    destination = _coordinate(points[-1])
    waypoints = [_coordinate(point) for point in points[1:-1]]

    google_maps_url = f"https://www.google.com/maps/dir/{origin}/{destination}"
    if waypoints:
        google_maps_url += f"?waypoints={'|'.join(waypoints)}"
    return NavigationLinks(
        waze_url=f"https://waze.com/ul?ll={destination}&navigate=yes&zoom=17",
        google_maps_url=google_maps_url,
        origin=origin,
        destination=destination,
        waypoints=waypoints,
    )


def build_qr_code(route_id: int, token: str | None = None) -> tuple[str, str]:
    """Return (QR image URL, encoded share URL) for a route or one of its shares."""
    if token is not None:
        share = share_store.fetch_share(token)
        if share.route_id != route_id:
            raise ValueError(f"Share does not belong to route {route_id}.")
        url = share_url(share.token)
    else:
        route_store.fetch_route(route_id, with_points=False)
        url = share_url(str(route_id))

    qr_url = f"{settings.qr_code_service_url}?size=300x300&data={quote(url, safe='')}"
    return qr_url, url
