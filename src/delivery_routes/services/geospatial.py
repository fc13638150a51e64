"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from ..models.domain import Coordinate

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(a: Coordinate, b: Coordinate) -> float:
    return haversine_km(a.lat, a.lng, b.lat, b.lng)


def drive_minutes(distance: float, avg_speed_kmh: float) -> float:
    """Convert a distance into drive time at a constant average speed."""

    if avg_speed_kmh <= 0:
        raise ValueError("Average speed must be positive.")
    return distance / avg_speed_kmh * 60.0


def is_valid_coordinate(lat: float | None, lng: float | None) -> bool:
    if lat is None or lng is None:
        return False
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def distance_matrix(points: Sequence[Coordinate]) -> np.ndarray:
    """Return the symmetric pairwise haversine matrix (km) for ``points``.

    The same formula as :func:`haversine_km`, vectorised so a request only pays
    for the trigonometry once.
    """

    if not points:
        return np.zeros((0, 0), dtype=float)

    lat = np.radians(np.array([point.lat for point in points], dtype=float))
    lng = np.radians(np.array([point.lng for point in points], dtype=float))

    d_phi = lat[None, :] - lat[:, None]
    d_lambda = lng[None, :] - lng[:, None]
    a = np.sin(d_phi / 2) ** 2 + np.cos(lat)[:, None] * np.cos(lat)[None, :] * np.sin(d_lambda / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    matrix = EARTH_RADIUS_KM * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    np.fill_diagonal(matrix, 0.0)
    return matrix
