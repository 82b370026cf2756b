"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def haversine_matrix_km(coordinates: Sequence[tuple[float, float]]) -> np.ndarray:
    """Pairwise great-circle distances for (lat, lon) pairs as an NxN array."""

    if not coordinates:
        return np.zeros((0, 0))
    points = np.radians(np.asarray(coordinates, dtype=float))
    lat = points[:, 0][:, np.newaxis]
    lon = points[:, 1][:, np.newaxis]

    d_phi = lat.T - lat
    d_lambda = lon.T - lon
    a = np.sin(d_phi / 2) ** 2 + np.cos(lat) * np.cos(lat.T) * np.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))

