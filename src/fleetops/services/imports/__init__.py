"""Spreadsheet import services."""

from .trips import import_trips_with_duplicate_detection, list_import_history, parse_trip_rows

__all__ = ["import_trips_with_duplicate_detection", "list_import_history", "parse_trip_rows"]
