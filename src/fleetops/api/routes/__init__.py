"""Route group exports."""

from . import duplicates, health, imports, optimized_routes, sharing, weather

__all__ = ["duplicates", "health", "imports", "optimized_routes", "sharing", "weather"]
