"""Routing endpoints."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response, status

from ...config import settings
from ...models.domain import Coordinate, PaymentBreakdown, Stop
from ...schemas.routing import (
    ActiveRouteResponse,
    CoordinateModel,
    PlanRouteRequest,
    PublishRouteRequest,
    RouteFromOrdersRequest,
    RouteResponse,
)
from ...services.outputs.routing_formatter import (
    route_result_from_json,
    route_result_to_csv,
    route_result_to_json,
)
from ...services.routing.active_store import get_active_route_store
from ...services.routing.errors import ActiveRouteNotFound, InvalidRouteRequest, OrdersSourceError
from ...services.routing.models import ActiveRoute, RouteRequest, RouteResult, RouteStrategy
from ...services.routing.service import compute_route, plan_route

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/route", tags=["route"])


def _coordinate(model: Optional[CoordinateModel]) -> Optional[Coordinate]:
    if model is None:
        return None
    return Coordinate(lat=model.lat, lng=model.lng)


def _strategy(opt: Optional[str]) -> RouteStrategy:
    return RouteStrategy(opt or settings.default_strategy)


def _route_response(result: RouteResult) -> RouteResponse:
    return RouteResponse.model_validate(route_result_to_json(result))


def _active_response(active: ActiveRoute) -> ActiveRouteResponse:
    return ActiveRouteResponse.model_validate(
        {
            **route_result_to_json(active.route),
            "driver": active.driver_key,
            "publishedAt": active.published_at,
        }
    )


def _lookup_active(driver: Optional[str]) -> ActiveRoute:
    store = get_active_route_store()
    return store.get_active(driver) if driver else store.get_latest()


@router.post("/from-orders", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def route_from_orders(payload: RouteFromOrdersRequest) -> RouteResponse:
    request = RouteRequest(
        start=_coordinate(payload.start),
        end=_coordinate(payload.end),
        statuses=tuple(payload.statuses or settings.default_statuses),
        explicit_ids=frozenset(payload.order_ids) if payload.order_ids else None,
        round_trip=payload.round_trip if payload.round_trip is not None else settings.default_round_trip,
        service_minutes=payload.service_min if payload.service_min is not None else settings.default_service_minutes,
        avg_speed_kmh=payload.avg_speed_kmh if payload.avg_speed_kmh is not None else settings.default_avg_speed_kmh,
        strategy=_strategy(payload.opt),
    )
    try:
        return _route_response(compute_route(request))
    except InvalidRouteRequest as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except OrdersSourceError as exc:
        logger.error(f"Orders collaborator failed: {exc}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error computing route from orders: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to compute route: {str(exc)}"
        ) from exc


@router.post("/plan", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def plan(payload: PlanRouteRequest) -> RouteResponse:
    """Plan a route over stops supplied in the request body."""
    stops = []
    for index, item in enumerate(payload.stops, start=1):
        stop_id = item.id or str(index)
        breakdown = item.payment_breakdown
        stops.append(
            Stop(
                stop_id=stop_id,
                name=item.name or stop_id,
                address=item.address or "",
                coordinate=Coordinate(lat=item.lat, lng=item.lng),
                amount=item.amount,
                payment_method=item.payment_method or "Not Set",
                payment_breakdown=PaymentBreakdown(**breakdown.model_dump()) if breakdown else PaymentBreakdown(),
            )
        )
    try:
        result = plan_route(
            _coordinate(payload.start),
            stops,
            round_trip=payload.round_trip if payload.round_trip is not None else settings.default_round_trip,
            service_minutes=payload.service_min if payload.service_min is not None else settings.default_service_minutes,
            avg_speed_kmh=payload.avg_speed_kmh if payload.avg_speed_kmh is not None else settings.default_avg_speed_kmh,
            strategy=_strategy(payload.opt),
            end=_coordinate(payload.end),
        )
        return _route_response(result)
    except InvalidRouteRequest as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error planning route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to plan route: {str(exc)}"
        ) from exc


@router.post("/active", response_model=ActiveRouteResponse, status_code=status.HTTP_200_OK)
def publish_active_route(payload: PublishRouteRequest) -> ActiveRouteResponse:
    """Publish a driver's chosen route, replacing any earlier one for that driver."""
    driver = (payload.driver or "").strip() or settings.default_driver_key
    try:
        route = route_result_from_json(payload.model_dump(by_alias=True))
        active = get_active_route_store().publish(driver, route)
        return _active_response(active)
    except InvalidRouteRequest as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error publishing route for driver '{driver}': {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to publish route: {str(exc)}"
        ) from exc


@router.get("/active", response_model=ActiveRouteResponse, status_code=status.HTTP_200_OK)
def get_active_route(
    driver: str | None = Query(default=None, description="Driver key; omit for the latest published route"),
) -> ActiveRouteResponse:
    try:
        return _active_response(_lookup_active(driver))
    except ActiveRouteNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error reading active route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to read active route: {str(exc)}"
        ) from exc


@router.get("/active/manifest.csv", status_code=status.HTTP_200_OK)
def get_active_route_manifest(
    driver: str | None = Query(default=None, description="Driver key; omit for the latest published route"),
) -> Response:
    """Download the published stops as a CSV delivery manifest."""
    try:
        active = _lookup_active(driver)
    except ActiveRouteNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    content = route_result_to_csv(active.route, driver_key=active.driver_key)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="route_{active.driver_key}.csv"'},
    )
