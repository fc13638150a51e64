"""Project distances, drive times and ETAs along an ordered route."""

from __future__ import annotations

import math
from typing import Optional, Sequence

from ...models.domain import Coordinate, Stop
from ..geospatial import distance_km, drive_minutes
from .models import RouteParams, RouteResult, RouteStopResult


def _round_minutes(value: float) -> int:
    # halves round up, so 2.5 minutes reads as 3
    return int(math.floor(value + 0.5))


def project_schedule(
    start: Coordinate,
    ordered_stops: Sequence[Stop],
    service_minutes: float,
    avg_speed_kmh: float,
    round_trip: bool,
    *,
    end: Optional[Coordinate] = None,
    method: str = "nearest",
) -> RouteResult:
    """Walk ``ordered_stops`` from ``start`` and build the route schedule.

    ``eta_minutes`` is the arrival time at a stop: all drive time so far plus
    the service time of every earlier stop. The return leg (to ``start`` on a
    round trip, else to ``end`` when given) counts towards the totals but has
    no stop entry. ``total_drive_minutes`` never includes service time.
    """
    cumulative_km = 0.0
    cumulative_drive = 0.0
    cumulative_service = 0.0
    previous = start
    results: list[RouteStopResult] = []

    for index, stop in enumerate(ordered_stops, start=1):
        leg_km = distance_km(previous, stop.coordinate)
        leg_minutes = drive_minutes(leg_km, avg_speed_kmh)
        cumulative_drive += leg_minutes
        cumulative_km += leg_km
        results.append(
            RouteStopResult.from_stop(
                stop,
                sequence_index=index,
                distance_from_prev_km=leg_km,
                drive_minutes_from_prev=leg_minutes,
                cumulative_distance_km=cumulative_km,
                eta_minutes=_round_minutes(cumulative_drive + cumulative_service),
            )
        )
        cumulative_service += service_minutes
        previous = stop.coordinate

    return_to = start if round_trip else end
    if results and return_to is not None:
        leg_km = distance_km(previous, return_to)
        cumulative_km += leg_km
        cumulative_drive += drive_minutes(leg_km, avg_speed_kmh)

    return RouteResult(
        start=start,
        end=None if round_trip else end,
        method=method,
        params=RouteParams(
            round_trip=round_trip,
            service_minutes=service_minutes,
            avg_speed_kmh=avg_speed_kmh,
        ),
        stops=results,
        total_distance_km=cumulative_km,
        total_drive_minutes=_round_minutes(cumulative_drive),
        total_service_minutes=_round_minutes(cumulative_service),
        total_minutes=_round_minutes(cumulative_drive + cumulative_service),
    )
