"""Routing request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CoordinateModel(_CamelModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class PaymentBreakdownModel(_CamelModel):
    balance_amount: float = Field(0.0, alias="balanceAmount")
    cash_amount: float = Field(0.0, alias="cashAmount")
    card_amount: float = Field(0.0, alias="cardAmount")
    bank_amount: float = Field(0.0, alias="bankAmount")


class _RouteOptions(_CamelModel):
    start: CoordinateModel
    end: Optional[CoordinateModel] = Field(
        default=None,
        description="Fixed finishing point used when roundTrip is false.",
    )
    round_trip: Optional[bool] = Field(default=None, alias="roundTrip")
    service_min: Optional[float] = Field(default=None, ge=0, alias="serviceMin")
    avg_speed_kmh: Optional[float] = Field(default=None, gt=0, alias="avgSpeedKmh")
    opt: Optional[Literal["2opt", "nearest"]] = None


class RouteFromOrdersRequest(_RouteOptions):
    statuses: Optional[List[str]] = Field(
        default=None,
        description="Eligible order statuses. Defaults to the configured statuses (pending).",
    )
    order_ids: Optional[List[str]] = Field(
        default=None,
        alias="orderIds",
        description="Optional allow-list that narrows the status-filtered orders.",
    )


class PlanStopModel(_CamelModel):
    id: Optional[str] = None
    name: Optional[str] = None
    address: Optional[str] = None
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    amount: float = 0.0
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod")
    payment_breakdown: Optional[PaymentBreakdownModel] = Field(default=None, alias="paymentBreakdown")


class PlanRouteRequest(_RouteOptions):
    stops: List[PlanStopModel] = Field(..., min_length=1)


class RouteStopModel(_CamelModel):
    id: str
    name: str = ""
    address: str = ""
    lat: float
    lng: float
    amount: float = 0.0
    payment_method: str = Field(default="Not Set", alias="paymentMethod")
    payment_breakdown: PaymentBreakdownModel = Field(default_factory=PaymentBreakdownModel, alias="paymentBreakdown")
    sequence_index: Optional[int] = Field(default=None, alias="sequenceIndex")
    distance_from_prev_km: float = Field(default=0.0, alias="distanceFromPrevKm")
    drive_minutes_from_prev: float = Field(default=0.0, alias="driveMinutesFromPrev")
    cumulative_distance_km: float = Field(default=0.0, alias="cumulativeDistanceKm")
    eta_minutes: int = Field(default=0, alias="etaMinutes")


class RouteParamsModel(_CamelModel):
    round_trip: bool = Field(..., alias="roundTrip")
    service_min: float = Field(..., alias="serviceMin")
    avg_speed_kmh: float = Field(..., alias="avgSpeedKmh")


class RouteResponse(_CamelModel):
    start: CoordinateModel
    end: Optional[CoordinateModel] = None
    method: str = "2opt"
    params: Optional[RouteParamsModel] = None
    total_distance_km: float = Field(default=0.0, alias="totalDistanceKm")
    total_drive_minutes: int = Field(default=0, alias="totalDriveMinutes")
    total_service_minutes: int = Field(default=0, alias="totalServiceMinutes")
    total_minutes: int = Field(default=0, alias="totalMinutes")
    stops: List[RouteStopModel] = Field(default_factory=list)


class PublishRouteRequest(RouteResponse):
    driver: Optional[str] = Field(default=None, description="Driver key; defaults to the configured driver key.")


class ActiveRouteResponse(RouteResponse):
    driver: str
    published_at: datetime = Field(..., alias="publishedAt")
