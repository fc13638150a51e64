"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from ...models.domain import Coordinate, PaymentBreakdown, Stop


class RouteStrategy(str, Enum):
    NEAREST = "nearest"
    TWO_OPT = "2opt"


@dataclass(slots=True)
class RouteRequest:
    start: Coordinate
    statuses: tuple[str, ...]
    explicit_ids: Optional[frozenset[str]] = None
    round_trip: bool = True
    service_minutes: float = 5.0
    avg_speed_kmh: float = 30.0
    strategy: RouteStrategy = RouteStrategy.TWO_OPT
    end: Optional[Coordinate] = None


@dataclass(slots=True)
class RouteStopResult:
    stop_id: str
    name: str
    address: str
    coordinate: Coordinate
    amount: float
    payment_method: str
    payment_breakdown: PaymentBreakdown
    sequence_index: int
    distance_from_prev_km: float
    drive_minutes_from_prev: float
    cumulative_distance_km: float
    eta_minutes: int

    @classmethod
    def from_stop(cls, stop: Stop, **schedule) -> "RouteStopResult":
        return cls(
            stop_id=stop.stop_id,
            name=stop.name,
            address=stop.address,
            coordinate=stop.coordinate,
            amount=stop.amount,
            payment_method=stop.payment_method,
            payment_breakdown=stop.payment_breakdown,
            **schedule,
        )


@dataclass(slots=True)
class RouteParams:
    round_trip: bool
    service_minutes: float
    avg_speed_kmh: float


@dataclass(slots=True)
class RouteResult:
    start: Coordinate
    method: str
    params: RouteParams
    stops: List[RouteStopResult] = field(default_factory=list)
    end: Optional[Coordinate] = None
    total_distance_km: float = 0.0
    total_drive_minutes: int = 0
    total_service_minutes: int = 0
    total_minutes: int = 0


@dataclass(slots=True)
class ActiveRoute:
    driver_key: str
    route: RouteResult
    published_at: datetime
