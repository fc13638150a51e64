"""Exceptions raised by the routing services."""


class RouteServiceError(Exception):
    """Base exception for the route optimization service."""


class InvalidRouteRequest(RouteServiceError, ValueError):
    """Raised when request fields are malformed or out of range."""


class ActiveRouteNotFound(RouteServiceError, LookupError):
    """Raised when no route has been published for a driver."""

    def __init__(self, driver_key: str | None = None):
        self.driver_key = driver_key
        if driver_key is None:
            message = "No active route has been published."
        else:
            message = f"No active route published for driver '{driver_key}'."
        super().__init__(message)


class OrdersSourceError(RouteServiceError):
    """Raised when the orders collaborator cannot be read."""
