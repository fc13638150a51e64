"""Storage for the route each driver has most recently published."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from ...config import settings
from ...db.supabase import get_supabase_client
from ..outputs.routing_formatter import route_result_from_json, route_result_to_json
from .errors import ActiveRouteNotFound, InvalidRouteRequest
from .models import ActiveRoute, RouteResult

logger = logging.getLogger(__name__)


def _validate_publish(driver_key: str, route: RouteResult) -> str:
    key = (driver_key or "").strip()
    if not key:
        raise InvalidRouteRequest("Driver key is required to publish a route.")
    if not route.stops:
        raise InvalidRouteRequest("Cannot publish a route without stops.")
    return key


class ActiveRouteStore(ABC):
    """One current route per driver key; the last publish wins."""

    @abstractmethod
    def publish(self, driver_key: str, route: RouteResult) -> ActiveRoute:
        raise NotImplementedError

    @abstractmethod
    def get_active(self, driver_key: str) -> ActiveRoute:
        """Return the route for ``driver_key`` or raise :class:`ActiveRouteNotFound`."""
        raise NotImplementedError

    @abstractmethod
    def get_latest(self) -> ActiveRoute:
        """Return the most recently published route across all drivers."""
        raise NotImplementedError


class InMemoryActiveRouteStore(ActiveRouteStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        # insertion order tracks publish order: a republish moves the key to the end
        self._routes: dict[str, ActiveRoute] = {}

    def publish(self, driver_key: str, route: RouteResult) -> ActiveRoute:
        key = _validate_publish(driver_key, route)
        active = ActiveRoute(driver_key=key, route=route, published_at=datetime.now(timezone.utc))
        with self._lock:
            self._routes.pop(key, None)
            self._routes[key] = active
        logger.info("Published route for driver '%s' with %d stop(s)", key, len(route.stops))
        return active

    def get_active(self, driver_key: str) -> ActiveRoute:
        with self._lock:
            active = self._routes.get(driver_key)
        if active is None:
            raise ActiveRouteNotFound(driver_key)
        return active

    def get_latest(self) -> ActiveRoute:
        with self._lock:
            if not self._routes:
                raise ActiveRouteNotFound()
            return next(reversed(self._routes.values()))

    def clear(self) -> None:
        with self._lock:
            self._routes.clear()


class SupabaseActiveRouteStore(ActiveRouteStore):
    """Active routes kept in a Supabase table with a unique ``driver`` column."""

    def __init__(self, client, table: str | None = None) -> None:
        self._client = client
        self._table = table or settings.active_routes_table

    def publish(self, driver_key: str, route: RouteResult) -> ActiveRoute:
        key = _validate_publish(driver_key, route)
        published_at = datetime.now(timezone.utc)
        self._client.table(self._table).upsert(
            {
                "driver": key,
                "route": route_result_to_json(route),
                "published_at": published_at.isoformat(),
            },
            on_conflict="driver",
        ).execute()
        logger.info("Published route for driver '%s' with %d stop(s)", key, len(route.stops))
        return ActiveRoute(driver_key=key, route=route, published_at=published_at)

    def get_active(self, driver_key: str) -> ActiveRoute:
        response = (
            self._client.table(self._table)
            .select("driver, route, published_at")
            .eq("driver", driver_key)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        if not rows:
            raise ActiveRouteNotFound(driver_key)
        return self._row_to_active(rows[0])

    def get_latest(self) -> ActiveRoute:
        response = (
            self._client.table(self._table)
            .select("driver, route, published_at")
            .order("published_at", desc=True)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        if not rows:
            raise ActiveRouteNotFound()
        return self._row_to_active(rows[0])

    @staticmethod
    def _row_to_active(row: dict) -> ActiveRoute:
        published_at = row.get("published_at")
        if isinstance(published_at, str):
            published_at = datetime.fromisoformat(published_at.replace("Z", "+00:00"))
        return ActiveRoute(
            driver_key=row["driver"],
            route=route_result_from_json(row["route"]),
            published_at=published_at,
        )


_store: ActiveRouteStore | None = None
_store_lock = threading.Lock()


def get_active_route_store() -> ActiveRouteStore:
    """Return the process-wide store, building it once under a lock."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                client = get_supabase_client()
                _store = SupabaseActiveRouteStore(client) if client is not None else InMemoryActiveRouteStore()
    return _store


def reset_active_route_store() -> None:
    global _store
    with _store_lock:
        _store = None
