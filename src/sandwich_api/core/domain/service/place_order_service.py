from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from returns.pipeline import flow
from returns.pointfree import bind, map_
from returns.result import Failure, Result, Success

from sandwich_api.core.domain.model.errors import (
    OrderError,
    PaymentRejected,
    UnknownItems,
    ValidationError,
)
from sandwich_api.core.domain.model.menu import OrderLineSummary
from sandwich_api.core.domain.model.order import (
    Customer,
    DeliveryAddress,
    Fulfillment,
    Order,
    OrderId,
    OrderStatus,
    PaymentEvidence,
    now_utc,
)
from sandwich_api.core.domain.model.payment import (
    Network,
    PaymentChallenge,
    VerificationResult,
)
from sandwich_api.core.domain.service.address_service import PaymentAddressService
from sandwich_api.core.domain.service.payment_verification import (
    PaymentProofVerifier,
)
from sandwich_api.core.domain.service.pricing import calculate, unknown_item_ids
from sandwich_api.core.ports.inbound.place_order import (
    OrderConfirmed,
    PaymentRequired,
    PlaceOrderCommand,
    PlaceOrderOutcome,
    PlaceOrderUseCase,
)
from sandwich_api.core.ports.outbound.catalog import Catalog

logger = logging.getLogger(__name__)

LOCATIONS = ("shop-1", "shop-2")
DEFAULT_LOCATION = "shop-1"


def _unix_now() -> int:
    return int(time.time())


@dataclass(frozen=True)
class PlaceOrderDeps:
    catalog: Catalog
    addresses: PaymentAddressService
    verifier: PaymentProofVerifier
    network: Network
    resource_url: str = "https://x402.org/facilitator"
    payment_timeout_seconds: int = 300
    clock: Callable[[], int] = field(default=_unix_now)


@dataclass(frozen=True)
class _Fulfillment:
    customer: Customer
    fulfillment: Fulfillment
    location: str
    pickup_time: str | None
    delivery_address: DeliveryAddress | None
    delivery_window: str | None


@dataclass(frozen=True)
class PlaceOrderService(PlaceOrderUseCase):
    """
    Payment-gated order pipeline.

        Priced -> AwaitingPayment                 (no X-PAYMENT: 402 challenge)
        Priced -> ProofPresented -> Rejected      (401)
                                 -> Verified -> Confirmed (201)

    Fulfillment fields are validated only after the proof is verified, so a
    paid request can still be refused with a 400. There is no refund path for
    that case yet.
    """

    deps: PlaceOrderDeps

    async def place_order(
        self, command: PlaceOrderCommand
    ) -> Result[PlaceOrderOutcome, OrderError]:
        priced = flow(command, _validate_items, bind(self._price))
        if isinstance(priced, Failure):
            return priced
        summary = priced.unwrap()

        if not command.payment_header:
            return await self._challenge(summary)

        return flow(
            self._verify(command.payment_header, summary),
            bind(lambda v: _validate_fulfillment(command).map(lambda f: (v, f))),
            map_(lambda vf: OrderConfirmed(self._build_order(summary, *vf))),
        )

    # ---- states ------------------------------------------------------------

    def _price(self, cmd: PlaceOrderCommand) -> Result[OrderLineSummary, OrderError]:
        summary = calculate(self.deps.catalog, cmd.items)
        if summary.is_empty:
            return Failure(
                UnknownItems(
                    message="No valid items found",
                    fields=("items",),
                    requested_ids=tuple(cmd.items),
                    unknown_ids=unknown_item_ids(self.deps.catalog, cmd.items),
                )
            )
        return Success(summary)

    async def _challenge(
        self, summary: OrderLineSummary
    ) -> Result[PlaceOrderOutcome, OrderError]:
        address = await self.deps.addresses.provision(summary.total_minor_units)
        return address.map(
            lambda pay_to: PaymentRequired(
                challenge=PaymentChallenge(
                    scheme="exact",
                    network_id=self.deps.network.chain_id,
                    max_amount=str(summary.total),
                    resource=self.deps.resource_url,
                    pay_to_address=pay_to,
                    timeout_seconds=self.deps.payment_timeout_seconds,
                ),
                preview=summary,
            )
        )

    def _verify(
        self, header: str, summary: OrderLineSummary
    ) -> Result[VerificationResult, OrderError]:
        verification = self.deps.verifier.verify(
            header, summary.total_minor_units, self.deps.clock()
        )
        if not verification.valid:
            return Failure(
                PaymentRejected(
                    message="Invalid payment header",
                    reason=verification.error_reason or "invalid proof",
                )
            )
        return Success(verification)

    def _build_order(
        self,
        summary: OrderLineSummary,
        verification: VerificationResult,
        details: _Fulfillment,
    ) -> Order:
        network = self.deps.network
        order = Order(
            order_id=OrderId.new(),
            status=OrderStatus.CONFIRMED,
            customer=details.customer,
            fulfillment=details.fulfillment,
            location=details.location,
            pickup_time=details.pickup_time,
            delivery_address=details.delivery_address,
            delivery_window=details.delivery_window,
            summary=summary,
            tax_description=self.deps.catalog.tax.description,
            payment=PaymentEvidence(
                network_id=network.chain_id,
                network_name=network.display_name,
                from_address=verification.from_address,
                to_address=verification.to_address,
                amount_minor_units=verification.amount_minor_units,
            ),
            created_at=now_utc(),
            note=(
                "Production order."
                if network.is_production
                else "Testnet order - not submitted for fulfillment. For testing only."
            ),
        )
        logger.info(
            "order %s confirmed: %d item(s), total %s, paid from %s",
            order.order_id.value,
            len(summary.items),
            summary.total,
            verification.from_address,
        )
        return order


# ---- pure helpers ----------------------------------------------------------


def _validate_items(cmd: PlaceOrderCommand) -> Result[PlaceOrderCommand, OrderError]:
    if not cmd.items:
        return Failure(ValidationError("No items specified", fields=("items",)))
    return Success(cmd)


def _validate_fulfillment(cmd: PlaceOrderCommand) -> Result[_Fulfillment, OrderError]:
    customer = cmd.customer
    name = _text(customer.name) if customer else None
    phone = _text(customer.phone) if customer else None
    if not name or not phone:
        return Failure(
            ValidationError(
                "Customer name and phone required",
                fields=("customer.name", "customer.phone"),
            )
        )

    if not cmd.fulfillment:
        return Failure(
            ValidationError(
                "Fulfillment type required (pickup or delivery)",
                fields=("fulfillment",),
            )
        )
    try:
        kind = Fulfillment(cmd.fulfillment)
    except ValueError:
        return Failure(
            ValidationError(
                "Fulfillment must be 'pickup' or 'delivery'", fields=("fulfillment",)
            )
        )

    location = _text(cmd.location) or DEFAULT_LOCATION
    if location not in LOCATIONS:
        return Failure(
            ValidationError(
                f"location must be one of: {', '.join(LOCATIONS)}",
                fields=("location",),
            )
        )

    pickup_time = _text(cmd.pickup_time)
    delivery_address: DeliveryAddress | None = None
    delivery_window = _text(cmd.delivery_window)

    if kind is Fulfillment.PICKUP and not pickup_time:
        return Failure(
            ValidationError(
                "Pickup time required for pickup orders", fields=("pickup_time",)
            )
        )

    if kind is Fulfillment.DELIVERY:
        addr = cmd.delivery_address
        if addr is None:
            return Failure(
                ValidationError(
                    "Delivery address required for delivery orders",
                    fields=("delivery_address",),
                )
            )
        missing = tuple(
            f"delivery_address.{k}"
            for k in ("street", "city", "state", "zip")
            if not _text(getattr(addr, k))
        )
        if missing:
            return Failure(
                ValidationError("Delivery address is incomplete", fields=missing)
            )
        if not delivery_window:
            return Failure(
                ValidationError(
                    "Delivery window required for delivery orders",
                    fields=("delivery_window",),
                )
            )
        delivery_address = DeliveryAddress(
            street=addr.street.strip(),
            city=addr.city.strip(),
            state=addr.state.strip(),
            zip=addr.zip.strip(),
        )

    return Success(
        _Fulfillment(
            customer=Customer(
                name=name, phone=phone, email=_text(customer.email) or None
            ),
            fulfillment=kind,
            location=location,
            pickup_time=pickup_time if kind is Fulfillment.PICKUP else None,
            delivery_address=delivery_address,
            delivery_window=delivery_window if delivery_address else None,
        )
    )


def _text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None
