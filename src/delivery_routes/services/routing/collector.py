"""Turn order records into routable stops."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ...models.domain import Coordinate, Order, PaymentBreakdown, Stop
from ..geospatial import is_valid_coordinate

logger = logging.getLogger(__name__)


def normalize_ids(ids: Iterable[str] | None) -> frozenset[str] | None:
    """Strip blanks from an id allow-list.

    ``None`` or an empty list means no allow-list. A list whose entries are all
    blank is still an allow-list and comes back as an empty frozenset, which
    matches no order.
    """
    if ids is None:
        return None
    values = list(ids)
    if not values:
        return None
    return frozenset(str(value).strip() for value in values if value is not None and str(value).strip())


def order_to_stop(order: Order) -> Stop:
    name = order.shop_name or order.customer_name or order.order_id
    address = ", ".join(part for part in (order.address, order.postcode) if part)
    return Stop(
        stop_id=order.order_id,
        name=name,
        address=address,
        coordinate=Coordinate(lat=float(order.lat), lng=float(order.lng)),
        amount=order.total_amount or 0.0,
        payment_method=order.payment_method or "Not Set",
        payment_breakdown=order.payment_breakdown or PaymentBreakdown(),
    )


def collect_stops(
    orders: Iterable[Order],
    statuses: Sequence[str],
    explicit_ids: Iterable[str] | None = None,
) -> list[Stop]:
    """Select the orders eligible for routing, in input order.

    An order is eligible when its status is in ``statuses`` and it carries a
    usable coordinate. A given ``explicit_ids`` narrows that set further;
    it never admits an order the status or geocoding checks would reject.
    """
    status_set = {status.strip() for status in statuses if status and status.strip()}
    id_set = normalize_ids(explicit_ids)

    stops: list[Stop] = []
    skipped_geo = 0
    for order in orders:
        if order.status not in status_set:
            continue
        if id_set is not None and order.order_id not in id_set:
            continue
        if not is_valid_coordinate(order.lat, order.lng):
            skipped_geo += 1
            continue
        stops.append(order_to_stop(order))

    if skipped_geo:
        logger.info("Skipped %d order(s) without valid geocoding", skipped_geo)
    return stops
