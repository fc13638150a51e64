"""Nearest-neighbour tour construction."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ...models.domain import Coordinate, Stop
from ..geospatial import distance_matrix


def nearest_neighbor_tour(start: Coordinate, stops: Sequence[Stop]) -> list[Stop]:
    """Order ``stops`` by repeatedly driving to the closest unvisited one.

    The depot at ``start`` is node 0 of the matrix and is never part of the
    returned tour. Ties go to the stop that appears first in ``stops``.
    """
    if len(stops) <= 1:
        return list(stops)

    matrix = distance_matrix([start, *(stop.coordinate for stop in stops)])
    remaining = np.ones(len(stops) + 1, dtype=bool)
    remaining[0] = False

    tour: list[Stop] = []
    current = 0
    while remaining.any():
        candidates = np.where(remaining, matrix[current], np.inf)
        # argmin returns the first minimum, which is the earliest input stop
        nearest = int(np.argmin(candidates))
        tour.append(stops[nearest - 1])
        remaining[nearest] = False
        current = nearest
    return tour
