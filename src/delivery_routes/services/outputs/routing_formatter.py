"""Serializers for routing outputs."""

from __future__ import annotations

import csv
import io
from typing import Any

from ...config import settings
from ...models.domain import Coordinate, PaymentBreakdown
from ..routing.models import RouteParams, RouteResult, RouteStopResult


def _coordinate_to_json(coordinate: Coordinate | None) -> dict | None:
    if coordinate is None:
        return None
    return {"lat": coordinate.lat, "lng": coordinate.lng}


def _coordinate_from_json(data: dict | None) -> Coordinate | None:
    if not data:
        return None
    return Coordinate(lat=float(data["lat"]), lng=float(data["lng"]))


def route_result_to_json(result: RouteResult) -> dict:
    return {
        "start": _coordinate_to_json(result.start),
        "end": _coordinate_to_json(result.end),
        "method": result.method,
        "params": {
            "roundTrip": result.params.round_trip,
            "serviceMin": result.params.service_minutes,
            "avgSpeedKmh": result.params.avg_speed_kmh,
        },
        "totalDistanceKm": result.total_distance_km,
        "totalDriveMinutes": result.total_drive_minutes,
        "totalServiceMinutes": result.total_service_minutes,
        "totalMinutes": result.total_minutes,
        "stops": [
            {
                "id": stop.stop_id,
                "name": stop.name,
                "address": stop.address,
                "lat": stop.coordinate.lat,
                "lng": stop.coordinate.lng,
                "amount": stop.amount,
                "paymentMethod": stop.payment_method,
                "paymentBreakdown": {
                    "balanceAmount": stop.payment_breakdown.balance_amount,
                    "cashAmount": stop.payment_breakdown.cash_amount,
                    "cardAmount": stop.payment_breakdown.card_amount,
                    "bankAmount": stop.payment_breakdown.bank_amount,
                },
                "sequenceIndex": stop.sequence_index,
                "distanceFromPrevKm": stop.distance_from_prev_km,
                "driveMinutesFromPrev": stop.drive_minutes_from_prev,
                "cumulativeDistanceKm": stop.cumulative_distance_km,
                "etaMinutes": stop.eta_minutes,
            }
            for stop in result.stops
        ],
    }


def route_result_from_json(data: dict[str, Any]) -> RouteResult:
    """Rebuild a :class:`RouteResult` from :func:`route_result_to_json` output."""
    params = data.get("params") or {}
    stops = []
    for position, item in enumerate(data.get("stops") or [], start=1):
        breakdown = item.get("paymentBreakdown") or {}
        stops.append(
            RouteStopResult(
                stop_id=str(item["id"]),
                name=item.get("name") or str(item["id"]),
                address=item.get("address") or "",
                coordinate=Coordinate(lat=float(item["lat"]), lng=float(item["lng"])),
                amount=float(item.get("amount") or 0.0),
                payment_method=item.get("paymentMethod") or "Not Set",
                payment_breakdown=PaymentBreakdown(
                    balance_amount=float(breakdown.get("balanceAmount") or 0.0),
                    cash_amount=float(breakdown.get("cashAmount") or 0.0),
                    card_amount=float(breakdown.get("cardAmount") or 0.0),
                    bank_amount=float(breakdown.get("bankAmount") or 0.0),
                ),
                sequence_index=int(item.get("sequenceIndex") or position),
                distance_from_prev_km=float(item.get("distanceFromPrevKm") or 0.0),
                drive_minutes_from_prev=float(item.get("driveMinutesFromPrev") or 0.0),
                cumulative_distance_km=float(item.get("cumulativeDistanceKm") or 0.0),
                eta_minutes=int(item.get("etaMinutes") or 0),
            )
        )
    return RouteResult(
        start=_coordinate_from_json(data["start"]),
        end=_coordinate_from_json(data.get("end")),
        method=data.get("method") or "nearest",
        params=RouteParams(
            round_trip=bool(params.get("roundTrip", settings.default_round_trip)),
            service_minutes=float(params.get("serviceMin", settings.default_service_minutes)),
            avg_speed_kmh=float(params.get("avgSpeedKmh", settings.default_avg_speed_kmh)),
        ),
        stops=stops,
        total_distance_km=float(data.get("totalDistanceKm") or 0.0),
        total_drive_minutes=int(data.get("totalDriveMinutes") or 0),
        total_service_minutes=int(data.get("totalServiceMinutes") or 0),
        total_minutes=int(data.get("totalMinutes") or 0),
    )


def route_result_to_csv(result: RouteResult, driver_key: str | None = None) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "driver",
        "sequence",
        "order_id",
        "name",
        "address",
        "lat",
        "lng",
        "amount",
        "payment_method",
        "distance_from_prev_km",
        "drive_minutes_from_prev",
        "cumulative_distance_km",
        "eta_minutes",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for stop in result.stops:
        writer.writerow(
            {
                "driver": driver_key or "",
                "sequence": stop.sequence_index,
                "order_id": stop.stop_id,
                "name": stop.name,
                "address": stop.address,
                "lat": stop.coordinate.lat,
                "lng": stop.coordinate.lng,
                "amount": stop.amount,
                "payment_method": stop.payment_method,
                "distance_from_prev_km": round(stop.distance_from_prev_km, 2),
                "drive_minutes_from_prev": round(stop.drive_minutes_from_prev, 1),
                "cumulative_distance_km": round(stop.cumulative_distance_km, 2),
                "eta_minutes": stop.eta_minutes,
            }
        )
    return buffer.getvalue()
