import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from delivery_routes.models.domain import Coordinate, Stop
from delivery_routes.services.outputs.routing_formatter import route_result_to_json
from delivery_routes.services.routing import active_store
from delivery_routes.services.routing.active_store import (
    InMemoryActiveRouteStore,
    SupabaseActiveRouteStore,
)
from delivery_routes.services.routing.errors import ActiveRouteNotFound, InvalidRouteRequest
from delivery_routes.services.routing.models import RouteResult
from delivery_routes.services.routing.schedule import project_schedule

DEPOT = Coordinate(lat=50.7071, lng=-1.9223)


def _route(*stop_ids: str) -> RouteResult:
    stops = [
        Stop(stop_id=sid, name=sid, address="", coordinate=Coordinate(lat=50.70 + index * 0.01, lng=-1.90))
        for index, sid in enumerate(stop_ids)
    ]
    return project_schedule(DEPOT, stops, 5.0, 30.0, True, method="2opt")


def test_publish_then_get_returns_same_route():
    store = InMemoryActiveRouteStore()
    route = _route("A", "B")

    store.publish("driver1", route)

    assert store.get_active("driver1").route == route


def test_get_unknown_driver_raises_not_found():
    store = InMemoryActiveRouteStore()
    store.publish("driver1", _route("A"))

    with pytest.raises(ActiveRouteNotFound):
        store.get_active("driver2")


def test_republish_overwrites_previous_route():
    store = InMemoryActiveRouteStore()
    store.publish("driver1", _route("A"))
    store.publish("driver1", _route("B", "C"))

    active = store.get_active("driver1")
    assert [stop.stop_id for stop in active.route.stops] == ["B", "C"]


def test_get_latest_follows_publish_order():
    store = InMemoryActiveRouteStore()
    with pytest.raises(ActiveRouteNotFound):
        store.get_latest()

    store.publish("driver1", _route("A"))
    store.publish("driver2", _route("B"))
    assert store.get_latest().driver_key == "driver2"

    store.publish("driver1", _route("C"))
    assert store.get_latest().driver_key == "driver1"


def test_publish_rejects_empty_route_and_blank_driver():
    store = InMemoryActiveRouteStore()

    with pytest.raises(InvalidRouteRequest):
        store.publish("driver1", _route())
    with pytest.raises(InvalidRouteRequest):
        store.publish("  ", _route("A"))


def test_concurrent_publishes_keep_one_route_per_driver():
    store = InMemoryActiveRouteStore()
    routes = {f"driver{i % 4}": _route(f"S{i}") for i in range(40)}

    def publish(index: int):
        key = f"driver{index % 4}"
        store.publish(key, _route(f"S{index}"))
        return store.get_active(key)

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(publish, range(40)))

    assert len(results) == 40
    for key in routes:
        active = store.get_active(key)
        assert active.driver_key == key
        assert len(active.route.stops) == 1


class _FakeTable:
    def __init__(self, rows: dict):
        self._rows = rows
        self._filter = None
        self._latest = False

    def upsert(self, record, on_conflict=None):
        assert on_conflict == "driver"
        self._rows[record["driver"]] = record
        return self

    def select(self, columns):
        return self

    def eq(self, column, value):
        self._filter = value
        return self

    def order(self, column, desc=False):
        self._latest = desc
        return self

    def limit(self, count):
        return self

    def execute(self):
        if self._filter is not None:
            data = [self._rows[self._filter]] if self._filter in self._rows else []
        elif self._latest:
            data = sorted(self._rows.values(), key=lambda row: row["published_at"], reverse=True)[:1]
        else:
            data = []
        return type("Response", (), {"data": data})()


class _FakeSupabase:
    def __init__(self):
        self.rows: dict = {}

    def table(self, name):
        assert name == "active_routes"
        return _FakeTable(self.rows)


def test_supabase_store_round_trip():
    client = _FakeSupabase()
    store = SupabaseActiveRouteStore(client)
    route = _route("A", "B")

    published = store.publish("driver1", route)
    fetched = store.get_active("driver1")

    assert client.rows["driver1"]["route"] == route_result_to_json(route)
    assert fetched.route == route
    assert fetched.published_at == published.published_at
    assert store.get_latest().driver_key == "driver1"
    with pytest.raises(ActiveRouteNotFound):
        store.get_active("driver2")


def test_first_concurrent_use_shares_one_store(monkeypatch: pytest.MonkeyPatch):
    def slow_client():
        time.sleep(0.05)
        return None

    monkeypatch.setattr(active_store, "get_supabase_client", slow_client)
    active_store.reset_active_route_store()
    barrier = threading.Barrier(4)

    def publish(index: int):
        barrier.wait()
        store = active_store.get_active_route_store()
        store.publish(f"d{index}", _route(f"S{index}"))
        return store

    try:
        with ThreadPoolExecutor(max_workers=4) as executor:
            stores = list(executor.map(publish, range(4)))

        assert all(store is stores[0] for store in stores)
        shared = active_store.get_active_route_store()
        assert sorted(shared.get_active(f"d{i}").driver_key for i in range(4)) == ["d0", "d1", "d2", "d3"]
    finally:
        active_store.reset_active_route_store()
