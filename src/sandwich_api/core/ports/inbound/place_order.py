from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence, Union

from returns.result import Result

from sandwich_api.core.domain.model.errors import OrderError
from sandwich_api.core.domain.model.menu import OrderLineSummary
from sandwich_api.core.domain.model.order import Order
from sandwich_api.core.domain.model.payment import PaymentChallenge


@dataclass(frozen=True)
class CustomerInfo:
    name: str | None = None
    phone: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class DeliveryAddressInfo:
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None


@dataclass(frozen=True)
class PlaceOrderCommand:
    # fields stay optional here: fulfillment data is validated after payment
    items: Sequence[str]
    fulfillment: str | None = None
    customer: CustomerInfo | None = None
    pickup_time: str | None = None
    delivery_address: DeliveryAddressInfo | None = None
    delivery_window: str | None = None
    location: str | None = None
    payment_header: str | None = None


@dataclass(frozen=True)
class PaymentRequired:
    challenge: PaymentChallenge
    preview: OrderLineSummary


@dataclass(frozen=True)
class OrderConfirmed:
    order: Order


PlaceOrderOutcome = Union[PaymentRequired, OrderConfirmed]


class PlaceOrderUseCase(Protocol):
    async def place_order(
        self, command: PlaceOrderCommand
    ) -> Result[PlaceOrderOutcome, OrderError]: ...
