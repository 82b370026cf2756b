"""Database persistence for route shares sent to drivers."""

from __future__ import annotations

from typing import Any

from ..db.supabase import execute_query, require_client
from ..models.domain import RouteShare, ShareStatus
from .errors import RecordNotFoundError
from .routes import SHARES_TABLE, parse_timestamp


def _share_from_row(row: dict[str, Any]) -> RouteShare:
    return RouteShare(
        id=int(row["id"]),
        route_id=int(row["route_id"]),
        token=str(row["token"]),
        driver_email=str(row["driver_email"]),
        platform=str(row.get("platform") or "direct_link"),
        status=ShareStatus(row.get("status") or ShareStatus.PENDING.value),
        send_count=int(row.get("send_count") or 1),
        view_count=int(row.get("view_count") or 0),
        click_count=int(row.get("click_count") or 0),
        created_at=parse_timestamp(row.get("created_at")),
        last_sent_at=parse_timestamp(row.get("last_sent_at")),
        responded_at=parse_timestamp(row.get("responded_at")),
    )


def insert_share(values: dict[str, Any]) -> RouteShare:
    client = require_client()
    response = execute_query(
        client.table(SHARES_TABLE).insert(values),
        f"share route {values.get('route_id')} with {values.get('driver_email')}",
    )
    rows = response.data or []
    if not rows:
        raise RecordNotFoundError("Route share", values.get("token"))
    return _share_from_row(rows[0])


def fetch_share(token: str) -> RouteShare:
    client = require_client()
    response = execute_query(
        client.table(SHARES_TABLE).select("*").eq("token", token).limit(1),
        "load route share",
    )
    rows = response.data or []
    if not rows:
        raise RecordNotFoundError("Route share", token)
    return _share_from_row(rows[0])


def fetch_shares(route_id: int) -> list[RouteShare]:
    client = require_client()
    response = execute_query(
        client.table(SHARES_TABLE).select("*").eq("route_id", route_id).order("created_at", desc=True),
        f"load shares of route {route_id}",
    )
    return [_share_from_row(row) for row in response.data or []]


def update_share(share_id: int, values: dict[str, Any]) -> RouteShare:
    client = require_client()
    response = execute_query(
        client.table(SHARES_TABLE).update(values).eq("id", share_id),
        f"update route share {share_id}",
    )
    rows = response.data or []
    if not rows:
        raise RecordNotFoundError("Route share", share_id)
    return _share_from_row(rows[0])
