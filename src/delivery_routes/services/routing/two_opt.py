"""2-opt local search over a depot-anchored delivery path.

The path always starts at the depot. It optionally ends at a fixed tail: the
depot again for round trips, or an explicit end point. Neither anchor is ever
moved; only the stops between them are reordered.

A move picks positions ``i < j`` and reverses ``path[i + 1 .. j]``. That swaps
the edges ``(i, i + 1)`` and ``(j, j + 1)`` for ``(i, j)`` and ``(i + 1, j + 1)``.
On an open path the last stop has no outgoing edge, so reversing the tail
segment only replaces ``(i, i + 1)`` with ``(i, last)``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import Coordinate, Stop
from ..geospatial import distance_matrix

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TwoOptStats:
    passes: int = 0
    swaps: int = 0
    timed_out: bool = False


def path_length(matrix: Sequence[Sequence[float]], path: Sequence[int]) -> float:
    return sum(matrix[path[k]][path[k + 1]] for k in range(len(path) - 1))


def two_opt(
    start: Coordinate,
    tour: Sequence[Stop],
    *,
    round_trip: bool,
    end: Optional[Coordinate] = None,
    max_passes: int | None = None,
    epsilon: float | None = None,
    time_limit_seconds: float | None = None,
    stats: TwoOptStats | None = None,
) -> list[Stop]:
    """Improve ``tour`` until no reversal shortens the path.

    When ``round_trip`` is set the leg back to ``start`` is part of the cost;
    otherwise a given ``end`` plays that role, and with neither the path is
    open. Tours of two stops or fewer are returned unchanged.
    """
    max_passes = max_passes if max_passes is not None else settings.two_opt_max_passes
    epsilon = epsilon if epsilon is not None else settings.two_opt_epsilon
    if time_limit_seconds is None:
        time_limit_seconds = settings.two_opt_time_limit_seconds
    stats = stats if stats is not None else TwoOptStats()

    n = len(tour)
    if n <= 2:
        return list(tour)

    points = [start, *(stop.coordinate for stop in tour)]
    tail: int | None = None
    if round_trip:
        tail = 0
    elif end is not None:
        points.append(end)
        tail = n + 1

    matrix = distance_matrix(points).tolist()
    path = list(range(n + 1)) + ([tail] if tail is not None else [])
    size = len(path)
    last_j = size - 2 if tail is not None else size - 1
    deadline = time.monotonic() + time_limit_seconds if time_limit_seconds else None

    while stats.passes < max_passes:
        stats.passes += 1
        improved = False
        for i in range(0, size - 2):
            if deadline is not None and time.monotonic() > deadline:
                stats.timed_out = True
                break
            a = path[i]
            b = path[i + 1]
            for j in range(i + 2, last_j + 1):
                c = path[j]
                if j + 1 < size:
                    e = path[j + 1]
                    before = matrix[a][b] + matrix[c][e]
                    after = matrix[a][c] + matrix[b][e]
                else:
                    before = matrix[a][b]
                    after = matrix[a][c]
                if after < before - epsilon:
                    path[i + 1 : j + 1] = path[i + 1 : j + 1][::-1]
                    b = path[i + 1]
                    improved = True
                    stats.swaps += 1
        if stats.timed_out or not improved:
            break

    logger.debug(
        "2-opt finished after %d pass(es), %d swap(s)%s; path length %.3f km",
        stats.passes,
        stats.swaps,
        " (time budget exhausted)" if stats.timed_out else "",
        path_length(matrix, path),
    )
    return [tour[node - 1] for node in path[1 : n + 1]]
