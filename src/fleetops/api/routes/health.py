"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...db.supabase import execute_query, get_supabase_client
from ...persistence.errors import StorageUnavailableError
from ...persistence.routes import ROUTES_TABLE

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check database connection and route storage status."""
    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set FLEETOPS_SUPABASE_URL and FLEETOPS_SUPABASE_KEY environment variables.",
            "routes_count": 0,
        }

    try:
        response = execute_query(
            supabase.table(ROUTES_TABLE).select("id", count="exact").limit(1),
            "count stored routes",
        )
    except StorageUnavailableError as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }

    routes_count = response.count if response.count is not None else len(response.data or [])
    return {
        "configured": True,
        "connected": True,
        "routes_count": routes_count,
        "message": f"Database connected. Found {routes_count} stored routes.",
    }
