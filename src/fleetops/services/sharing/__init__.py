"""Route sharing services."""

from .service import (
    PLATFORMS,
    LoggingNotifier,
    NavigationLinks,
    Notifier,
    ShareStateError,
    ShareStats,
    build_navigation_links,
    build_qr_code,
    get_share_stats,
    list_shares,
    record_share_event,
    resend_share,
    respond_to_share,
    share_route,
    share_url,
)

__all__ = [
    "PLATFORMS",
    "LoggingNotifier",
    "NavigationLinks",
    "Notifier",
    "ShareStateError",
    "ShareStats",
    "build_navigation_links",
    "build_qr_code",
    "get_share_stats",
    "list_shares",
    "record_share_event",
    "resend_share",
    "respond_to_share",
    "share_route",
    "share_url",
]
