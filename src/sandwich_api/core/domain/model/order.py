from __future__ import annotations

import itertools
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from sandwich_api.core.domain.model.menu import OrderLineSummary

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_SEQUENCE = itertools.count(1)


class Fulfillment(str, Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


class OrderStatus(str, Enum):
    CONFIRMED = "confirmed"


@dataclass(frozen=True)
class OrderId:
    value: str

    @staticmethod
    def new(now: datetime | None = None) -> "OrderId":
        # millisecond timestamp + process-wide sequence; unique within a process
        ts = now or now_utc()
        millis = int(ts.timestamp() * 1000)
        return OrderId(f"PBC-{_to_base36(millis)}-{next(_SEQUENCE):X}")


@dataclass(frozen=True)
class Customer:
    name: str
    phone: str
    email: str | None = None


@dataclass(frozen=True)
class DeliveryAddress:
    street: str
    city: str
    state: str
    zip: str


@dataclass(frozen=True)
class PaymentEvidence:
    network_id: str
    network_name: str
    from_address: str | None
    to_address: str | None
    amount_minor_units: int | None
    method: str = "USDC"
    status: str = "verified"


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    status: OrderStatus
    customer: Customer
    fulfillment: Fulfillment
    location: str
    summary: OrderLineSummary
    tax_description: str
    payment: PaymentEvidence
    created_at: datetime
    pickup_time: str | None = None
    delivery_address: DeliveryAddress | None = None
    delivery_window: str | None = None
    note: str = ""


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _to_base36(n: int) -> str:
    if n == 0:
        return "0"
    digits = []
    while n:
        n, r = divmod(n, 36)
        digits.append(_BASE36[r])
    return "".join(reversed(digits))
