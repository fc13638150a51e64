"""Routing orchestration service."""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from ...data.orders_repository import fetch_orders
from ...models.domain import Coordinate, Stop
from ..geospatial import is_valid_coordinate
from .collector import collect_stops, normalize_ids
from .construction import nearest_neighbor_tour
from .errors import InvalidRouteRequest
from .models import RouteRequest, RouteResult, RouteStrategy
from .schedule import project_schedule
from .two_opt import TwoOptStats, two_opt

logger = logging.getLogger(__name__)


def _validate_coordinate(label: str, coordinate: Optional[Coordinate]) -> None:
    if coordinate is None:
        return
    if not is_valid_coordinate(coordinate.lat, coordinate.lng):
        raise InvalidRouteRequest(
            f"{label} coordinate ({coordinate.lat}, {coordinate.lng}) is outside valid latitude/longitude bounds."
        )


def _validate_parameters(
    start: Optional[Coordinate],
    end: Optional[Coordinate],
    service_minutes: float,
    avg_speed_kmh: float,
) -> None:
    if start is None:
        raise InvalidRouteRequest("A start coordinate is required.")
    _validate_coordinate("Start", start)
    _validate_coordinate("End", end)
    if not math.isfinite(avg_speed_kmh) or avg_speed_kmh <= 0:
        raise InvalidRouteRequest("avgSpeedKmh must be greater than zero.")
    if not math.isfinite(service_minutes) or service_minutes < 0:
        raise InvalidRouteRequest("serviceMin must be zero or greater.")


def validate_route_request(request: RouteRequest) -> None:
    """Reject malformed requests before any orders are read."""
    _validate_parameters(request.start, request.end, request.service_minutes, request.avg_speed_kmh)
    if not request.statuses:
        raise InvalidRouteRequest("At least one order status is required.")


def build_route(
    start: Coordinate,
    stops: Sequence[Stop],
    *,
    round_trip: bool,
    service_minutes: float,
    avg_speed_kmh: float,
    strategy: RouteStrategy,
    end: Optional[Coordinate] = None,
) -> RouteResult:
    """Construct, improve and schedule a route over already-eligible stops."""
    tour = nearest_neighbor_tour(start, stops)
    method = RouteStrategy.NEAREST.value

    if strategy is RouteStrategy.TWO_OPT and len(tour) > 2:
        stats = TwoOptStats()
        tour = two_opt(start, tour, round_trip=round_trip, end=end, stats=stats)
        method = RouteStrategy.TWO_OPT.value
        logger.debug("2-opt applied %d swap(s) in %d pass(es)", stats.swaps, stats.passes)

    return project_schedule(
        start,
        tour,
        service_minutes,
        avg_speed_kmh,
        round_trip,
        end=end,
        method=method,
    )


def compute_route(request: RouteRequest) -> RouteResult:
    """Build the delivery route for the orders selected by ``request``."""
    validate_route_request(request)

    explicit_ids = normalize_ids(request.explicit_ids)
    if explicit_ids is not None and not explicit_ids:
        logger.info("Order ids were given but none is usable; returning an empty route")
        stops = []
    else:
        orders = fetch_orders(request.statuses, explicit_ids)
        stops = collect_stops(orders, request.statuses, explicit_ids)

    if not stops:
        logger.info("No eligible stops for statuses=%s ids=%s", list(request.statuses), explicit_ids and sorted(explicit_ids))

    result = build_route(
        request.start,
        stops,
        round_trip=request.round_trip,
        service_minutes=request.service_minutes,
        avg_speed_kmh=request.avg_speed_kmh,
        strategy=request.strategy,
        end=request.end,
    )
    logger.info(
        "Computed %s route over %d stop(s): %.2f km, %d drive min",
        result.method,
        len(result.stops),
        result.total_distance_km,
        result.total_drive_minutes,
    )
    return result


def plan_route(
    start: Coordinate,
    stops: Sequence[Stop],
    *,
    round_trip: bool,
    service_minutes: float,
    avg_speed_kmh: float,
    strategy: RouteStrategy,
    end: Optional[Coordinate] = None,
) -> RouteResult:
    """Build a route over caller-supplied stops instead of stored orders."""
    _validate_parameters(start, end, service_minutes, avg_speed_kmh)
    if not stops:
        raise InvalidRouteRequest("At least one stop is required.")
    for stop in stops:
        _validate_coordinate(f"Stop '{stop.stop_id}'", stop.coordinate)
    return build_route(
        start,
        stops,
        round_trip=round_trip,
        service_minutes=service_minutes,
        avg_speed_kmh=avg_speed_kmh,
        strategy=strategy,
        end=end,
    )
