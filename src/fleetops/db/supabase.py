"""Supabase client for the Python backend."""

import logging
from functools import lru_cache
from typing import Any

from supabase import create_client, Client

from ..config import settings
from ..persistence.errors import StorageUnavailableError

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Client | None:
    """Get cached Supabase client instance.

    Returns:
        Supabase Client instance if configured, None otherwise.
        Note: This does not test the connection - actual queries may fail with network errors.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logger.warning("Supabase credentials not configured (missing URL or key)")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error(f"Failed to create Supabase client: {e}")
        return None


def require_client() -> Client:
    """Return the configured client or fail the calling mutation."""
    client = get_supabase_client()
    if client is None:
        raise StorageUnavailableError(
            "Supabase is not configured. Set FLEETOPS_SUPABASE_URL and FLEETOPS_SUPABASE_KEY."
        )
    return client


def execute_query(query: Any, action: str) -> Any:
    """Run a PostgREST query builder, converting client failures to StorageUnavailableError."""
    try:
        return query.execute()
    except Exception as exc:
        logger.error(f"Supabase query failed while trying to {action}: {exc}")
        raise StorageUnavailableError(f"Failed to {action}: {exc}") from exc


# Example usage patterns:
#
# from .db.supabase import execute_query, require_client
#
# client = require_client()
#
# # Insert
# result = execute_query(
#     client.table("optimized_routes").insert({"name": "Rota 1", "status": "draft"}),
#     "insert route",
# )
#
# # Select with filters
# result = execute_query(
#     client.table("route_version_history")
#     .select("*")
#     .eq("route_id", 42)
#     .order("version_number", desc=True),
#     "load version history",
# )
