"""Domain models for orders, coordinates and delivery stops."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(slots=True, frozen=True)
class Coordinate:
    """A WGS84 point in decimal degrees."""

    lat: float
    lng: float


@dataclass(slots=True)
class PaymentBreakdown:
    balance_amount: float = 0.0
    cash_amount: float = 0.0
    card_amount: float = 0.0
    bank_amount: float = 0.0


@dataclass(slots=True)
class Order:
    """Order record as returned by the orders collaborator."""

    order_id: str
    status: str
    shop_name: Optional[str] = None
    customer_name: Optional[str] = None
    address: Optional[str] = None
    postcode: Optional[str] = None
    total_amount: float = 0.0
    payment_method: Optional[str] = None
    payment_breakdown: Optional[PaymentBreakdown] = None
    lat: Optional[float] = None
    lng: Optional[float] = None


@dataclass(slots=True)
class Stop:
    """A deliverable order candidate with a valid coordinate."""

    stop_id: str
    name: str
    address: str
    coordinate: Coordinate
    amount: float = 0.0
    payment_method: str = "Not Set"
    payment_breakdown: PaymentBreakdown = field(default_factory=PaymentBreakdown)
