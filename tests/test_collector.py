import os
from pathlib import Path

import pytest

from delivery_routes.config import settings
from delivery_routes.data import orders_repository
from delivery_routes.models.domain import Order, PaymentBreakdown
from delivery_routes.services.routing.collector import collect_stops
from delivery_routes.services.routing.errors import OrdersSourceError


def _order(oid: str, lat: float | None, lng: float | None, status: str = "pending", **extra) -> Order:
    return Order(order_id=oid, status=status, shop_name=f"Shop {oid}", lat=lat, lng=lng, **extra)


@pytest.fixture(autouse=True)
def clear_orders_cache():
    orders_repository._read_orders_file.cache_clear()
    yield
    orders_repository._read_orders_file.cache_clear()


def test_collect_stops_excludes_orders_without_geocoding():
    orders = [
        _order("A", 50.72, -1.90),
        _order("B", None, None),
        _order("C", 50.71, None),
        _order("D", 95.0, -1.90),
    ]

    stops = collect_stops(orders, ["pending"])

    assert [stop.stop_id for stop in stops] == ["A"]


def test_collect_stops_filters_by_status():
    orders = [_order("A", 50.72, -1.90), _order("B", 50.71, -1.95, status="delivered")]

    assert [s.stop_id for s in collect_stops(orders, ["pending"])] == ["A"]
    assert [s.stop_id for s in collect_stops(orders, ["pending", "delivered"])] == ["A", "B"]


def test_explicit_ids_only_narrow_eligibility():
    orders = [
        _order("A", 50.72, -1.90),
        _order("B", None, None),
        _order("C", 50.80, -1.80),
        _order("D", 50.71, -1.95, status="delivered"),
    ]

    stops = collect_stops(orders, ["pending"], explicit_ids=["A", "B", "D"])

    assert [stop.stop_id for stop in stops] == ["A"]


def test_explicit_ids_without_match_return_empty_list():
    orders = [_order("A", 50.72, -1.90)]

    assert collect_stops(orders, ["pending"], explicit_ids=["Z"]) == []


def test_missing_explicit_ids_do_not_narrow():
    orders = [_order("A", 50.72, -1.90), _order("B", 50.71, -1.95)]

    assert len(collect_stops(orders, ["pending"])) == 2
    assert len(collect_stops(orders, ["pending"], explicit_ids=[])) == 2


def test_all_blank_explicit_ids_match_nothing():
    orders = [_order("A", 50.72, -1.90), _order("B", 50.71, -1.95)]

    assert collect_stops(orders, ["pending"], explicit_ids=["  ", ""]) == []


def test_stop_display_fields_come_from_order():
    breakdown = PaymentBreakdown(cash_amount=10.0, card_amount=5.5)
    orders = [
        Order(
            order_id="A",
            status="pending",
            customer_name="Jane",
            address="1 High St",
            postcode="BH1 1AA",
            total_amount=15.5,
            payment_method="Split",
            payment_breakdown=breakdown,
            lat=50.72,
            lng=-1.90,
        ),
        Order(order_id="B", status="pending", lat=50.71, lng=-1.95),
    ]

    first, second = collect_stops(orders, ["pending"])

    assert first.name == "Jane"
    assert first.address == "1 High St, BH1 1AA"
    assert first.amount == 15.5
    assert first.payment_method == "Split"
    assert first.payment_breakdown == breakdown
    assert second.name == "B"
    assert second.address == ""
    assert second.payment_method == "Not Set"


def _write_orders_csv(path: Path) -> Path:
    path.write_text(
        "id,status,shopName,customerAddress,customerPostcode,totalAmount,paymentMethod,cashAmount,lat,lng\n"
        "o1,pending,Corner Shop,1 High St,BH1 1AA,12.50,Cash,12.50,50.72,-1.90\n"
        "o2,pending,Bakery,2 Low St,,8,,,,\n"
        "o3,delivered,Deli,3 Mid St,,20,Card,,50.71,-1.95\n"
        "o4,pending,Kiosk,4 Side St,,5,,,not-a-number,-1.95\n",
        encoding="utf-8",
    )
    return path


def test_load_orders_parses_csv(tmp_path: Path):
    orders = orders_repository.load_orders(_write_orders_csv(tmp_path / "orders.csv"))

    assert [order.order_id for order in orders] == ["o1", "o2", "o3", "o4"]
    first = orders[0]
    assert first.shop_name == "Corner Shop"
    assert first.total_amount == 12.5
    assert first.payment_breakdown.cash_amount == 12.5
    assert (first.lat, first.lng) == (50.72, -1.90)
    assert orders[1].lat is None and orders[1].payment_breakdown is None
    assert orders[3].lat is None


def test_load_orders_skips_unparseable_rows(tmp_path: Path):
    path = tmp_path / "orders.csv"
    path.write_text(
        "id,status,shopName,totalAmount,lat,lng\n"
        "o1,pending,Corner Shop,12.50,50.72,-1.90\n"
        ",pending,No Id,5,50.71,-1.95\n"
        "o3,pending,Deli,lots,50.71,-1.95\n"
        "o4,pending,Kiosk,5,50.73,-1.91\n",
        encoding="utf-8",
    )

    orders = orders_repository.load_orders(path)

    assert [order.order_id for order in orders] == ["o1", "o4"]


def test_load_orders_picks_up_a_rewritten_file(tmp_path: Path):
    path = _write_orders_csv(tmp_path / "orders.csv")
    assert orders_repository.load_orders(path)[0].status == "pending"

    path.write_text("id,status,lat,lng\no1,delivered,50.72,-1.90\n", encoding="utf-8")
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))

    reloaded = orders_repository.load_orders(path)
    assert [(order.order_id, order.status) for order in reloaded] == [("o1", "delivered")]


def test_fetch_orders_from_file_filters_status_and_ids(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "orders_file", _write_orders_csv(tmp_path / "orders.csv"))
    monkeypatch.setattr(orders_repository, "get_supabase_client", lambda: None)

    pending = orders_repository.fetch_orders(["pending"])
    subset = orders_repository.fetch_orders(["pending"], ["o1", "o3"])

    assert [order.order_id for order in pending] == ["o1", "o2", "o4"]
    assert [order.order_id for order in subset] == ["o1"]


def test_fetch_orders_missing_file_raises_source_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "orders_file", tmp_path / "missing.csv")
    monkeypatch.setattr(orders_repository, "get_supabase_client", lambda: None)

    with pytest.raises(OrdersSourceError):
        orders_repository.fetch_orders(["pending"])


class _FakeQuery:
    def __init__(self, rows, calls):
        self._rows = rows
        self._calls = calls

    def select(self, columns):
        self._calls.append(("select", columns))
        return self

    def in_(self, column, values):
        self._calls.append(("in_", column, tuple(values)))
        return self

    def execute(self):
        return type("Response", (), {"data": self._rows})()


class _FakeClient:
    def __init__(self, rows):
        self.rows = rows
        self.calls: list = []

    def table(self, name):
        self.calls.append(("table", name))
        return _FakeQuery(self.rows, self.calls)


def test_fetch_orders_from_database_pushes_filters(monkeypatch: pytest.MonkeyPatch):
    client = _FakeClient(
        [
            {
                "id": "o1",
                "status": "pending",
                "shop_name": "Corner Shop",
                "total_amount": 12.5,
                "payment_breakdown": {"cashAmount": 12.5},
                "geo_lat": 50.72,
                "geo_lng": -1.90,
            }
        ]
    )
    monkeypatch.setattr(orders_repository, "get_supabase_client", lambda: client)

    orders = orders_repository.fetch_orders(["pending"], ["o1"])

    assert [order.order_id for order in orders] == ["o1"]
    assert orders[0].payment_breakdown.cash_amount == 12.5
    assert ("table", settings.orders_table) in client.calls
    assert ("in_", "status", ("pending",)) in client.calls
    assert ("in_", "id", ("o1",)) in client.calls


def test_fetch_orders_database_failure_raises_source_error(monkeypatch: pytest.MonkeyPatch):
    class _BrokenClient:
        def table(self, name):
            raise RuntimeError("connection reset")

    monkeypatch.setattr(orders_repository, "get_supabase_client", lambda: _BrokenClient())

    with pytest.raises(OrdersSourceError):
        orders_repository.fetch_orders(["pending"])


def test_fetch_orders_from_database_skips_bad_rows(monkeypatch: pytest.MonkeyPatch):
    client = _FakeClient(
        [
            {"id": "o1", "status": "pending", "geo_lat": 50.72, "geo_lng": -1.90},
            {"status": "pending", "geo_lat": 50.71, "geo_lng": -1.95},
            {"id": "o3", "status": "pending", "total_amount": "n/a"},
        ]
    )
    monkeypatch.setattr(orders_repository, "get_supabase_client", lambda: client)

    orders = orders_repository.fetch_orders(["pending"])

    assert [order.order_id for order in orders] == ["o1"]
