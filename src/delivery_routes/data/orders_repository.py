"""Read access to orders, from Supabase when configured or a CSV export otherwise."""

from __future__ import annotations

import csv
import functools
import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from ..config import settings
from ..db.supabase import get_supabase_client
from ..models.domain import Order, PaymentBreakdown
from ..services.routing.errors import OrdersSourceError

logger = logging.getLogger(__name__)


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).replace(",", ""))
    except ValueError as exc:
        raise ValueError(f"Unable to parse float from value '{value}'") from exc


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _first(row: dict, *keys: str) -> Any:
    for key in keys:
        value = row.get(key)
        if value not in (None, ""):
            return value
    return None


def _breakdown_from_mapping(data: dict | None) -> Optional[PaymentBreakdown]:
    if not data:
        return None
    return PaymentBreakdown(
        balance_amount=_coerce_float(_first(data, "balanceAmount", "balance_amount")) or 0.0,
        cash_amount=_coerce_float(_first(data, "cashAmount", "cash_amount")) or 0.0,
        card_amount=_coerce_float(_first(data, "cardAmount", "card_amount")) or 0.0,
        bank_amount=_coerce_float(_first(data, "bankAmount", "bank_amount")) or 0.0,
    )


def order_from_row(row: dict) -> Order:
    """Build an :class:`Order` from a CSV row or a Supabase record.

    Coordinates that cannot be parsed are dropped so the order is treated as
    not geocoded; every other malformed number is an error.
    """
    order_id = _optional_text(_first(row, "id", "_id", "order_id", "orderId"))
    if not order_id:
        raise ValueError("Order row is missing an id.")

    coordinates: list[Optional[float]] = []
    for keys in (("lat", "geo_lat", "latitude"), ("lng", "geo_lng", "longitude")):
        try:
            coordinates.append(_coerce_float(_first(row, *keys)))
        except ValueError:
            logger.warning("Order %s has an unparseable coordinate; treating it as not geocoded", order_id)
            coordinates.append(None)

    breakdown = row.get("payment_breakdown") or row.get("paymentBreakdown")
    if not isinstance(breakdown, dict):
        breakdown = {key: row.get(key) for key in ("balanceAmount", "cashAmount", "cardAmount", "bankAmount")}
        if not any(value not in (None, "") for value in breakdown.values()):
            breakdown = None

    return Order(
        order_id=order_id,
        status=(_optional_text(row.get("status")) or "pending"),
        shop_name=_optional_text(_first(row, "shopName", "shop_name")),
        customer_name=_optional_text(_first(row, "customerName", "customer_name")),
        address=_optional_text(_first(row, "customerAddress", "customer_address", "address")),
        postcode=_optional_text(_first(row, "customerPostcode", "customer_postcode", "postcode")),
        total_amount=_coerce_float(_first(row, "totalAmount", "total_amount", "amount")) or 0.0,
        payment_method=_optional_text(_first(row, "paymentMethod", "payment_method")),
        payment_breakdown=_breakdown_from_mapping(breakdown),
        lat=coordinates[0],
        lng=coordinates[1],
    )


def _orders_from_rows(rows: Iterable[dict], source: str) -> list[Order]:
    orders: list[Order] = []
    for row in rows:
        try:
            orders.append(order_from_row(row))
        except ValueError as exc:
            logger.warning("Skipping unparseable order from %s: %s", source, exc)
    return orders


@functools.lru_cache(maxsize=4)
def _read_orders_file(csv_path: Path, modified_ns: int) -> tuple[Order, ...]:
    with csv_path.open(mode="r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise ValueError(f"Orders file '{csv_path}' is missing a header row.")
        return tuple(_orders_from_rows(reader, str(csv_path)))


def load_orders(source: Optional[Path] = None) -> tuple[Order, ...]:
    """Load orders from the configured CSV export.

    Parsed rows are cached per file modification time, so a re-exported file
    is picked up on the next call.
    """

    csv_path = source or settings.orders_file
    if not csv_path.exists():
        raise FileNotFoundError(f"Orders file not found: {csv_path}")
    return _read_orders_file(csv_path, csv_path.stat().st_mtime_ns)


def _fetch_from_database(client, statuses: Sequence[str], order_ids: Optional[Iterable[str]]) -> list[Order]:
    query = client.table(settings.orders_table).select("*").in_("status", list(statuses))
    if order_ids:
        query = query.in_("id", list(order_ids))
    response = query.execute()
    return _orders_from_rows(response.data or [], f"table '{settings.orders_table}'")


def fetch_orders(statuses: Sequence[str], order_ids: Optional[Iterable[str]] = None) -> list[Order]:
    """Return orders whose status is in ``statuses``, optionally limited to ``order_ids``.

    Raises:
        OrdersSourceError: the database or the orders file could not be read.
    """
    status_set = set(statuses)
    id_set = set(order_ids) if order_ids is not None else None
    if id_set is not None and not id_set:
        return []

    client = get_supabase_client()
    try:
        if client is not None:
            orders = _fetch_from_database(client, sorted(status_set), sorted(id_set) if id_set else None)
        else:
            orders = list(load_orders())
    except (OSError, ValueError) as exc:
        raise OrdersSourceError(f"Failed to read orders: {exc}") from exc
    except Exception as exc:
        logger.exception("Orders query failed")
        raise OrdersSourceError(f"Failed to read orders: {exc}") from exc

    return [
        order
        for order in orders
        if order.status in status_set and (id_set is None or order.order_id in id_set)
    ]
