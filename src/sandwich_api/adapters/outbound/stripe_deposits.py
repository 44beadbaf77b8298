"""
Stripe adapter: deposit addresses for USDC payments on Base.

Each 402 challenge gets its own crypto PaymentIntent; Stripe answers with a
single-use deposit address under
`next_action.crypto_collect_deposit_details.deposit_addresses.base.address`.
Only the address and the intent id leave this module.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

import stripe
from fastapi.concurrency import run_in_threadpool
from returns.result import Failure, Result, Success

from sandwich_api.core.domain.model.errors import BackendUnavailable, OrderError
from sandwich_api.core.domain.model.payment import DepositAddress, PaymentIntentStatus
from sandwich_api.core.ports.outbound.payment import DepositAddressBackend

logger = logging.getLogger(__name__)

HINT = "Ensure STRIPE_SECRET_KEY is set and crypto payins are enabled"


@dataclass(frozen=True)
class StripeDepositBackend(DepositAddressBackend):
    api_key: str = field(repr=False)
    metadata: Mapping[str, str] = field(
        default_factory=lambda: {"source": "sandwich-api", "product": "sandwich-order"}
    )

    async def create_deposit_address(
        self, amount_minor_units: int
    ) -> Result[DepositAddress, OrderError]:
        try:
            intent = await run_in_threadpool(self._create_intent, amount_minor_units)
        except stripe.StripeError as e:
            logger.exception("stripe: PaymentIntent creation failed")
            return Failure(
                BackendUnavailable(
                    message=f"Failed to create payment address: {e.user_message or type(e).__name__}",
                    hint=HINT,
                )
            )

        address = _dig(
            intent,
            "next_action",
            "crypto_collect_deposit_details",
            "deposit_addresses",
            "base",
            "address",
        )
        if not isinstance(address, str) or not address:
            logger.error("stripe: PaymentIntent %s has no Base deposit address", intent.get("id"))
            return Failure(
                BackendUnavailable(
                    message="No Base deposit address in PaymentIntent response",
                    hint=HINT,
                )
            )

        logger.info(
            "stripe: created PaymentIntent %s (%s cents) with deposit address %s",
            intent.get("id"),
            amount_minor_units,
            address,
        )
        return Success(DepositAddress(address=address, intent_id=intent.get("id")))

    async def get_status(
        self, intent_id: str
    ) -> Result[PaymentIntentStatus, OrderError]:
        try:
            intent = await run_in_threadpool(self._retrieve_intent, intent_id)
        except stripe.StripeError as e:
            logger.exception("stripe: PaymentIntent %s lookup failed", intent_id)
            return Failure(
                BackendUnavailable(
                    message=f"Failed to retrieve payment status: {e.user_message or type(e).__name__}",
                    hint=HINT,
                )
            )
        return Success(
            PaymentIntentStatus(
                intent_id=str(intent.get("id") or intent_id),
                status=str(intent.get("status") or "unknown"),
                amount_minor_units=int(intent.get("amount") or 0),
                currency=str(intent.get("currency") or "usd"),
            )
        )

    # StripeObject is not a dict (stripe>=13); only plain dicts leave these two
    def _create_intent(self, amount_minor_units: int) -> dict[str, Any]:
        intent = stripe.PaymentIntent.create(
            api_key=self.api_key,
            amount=amount_minor_units,
            currency="usd",
            payment_method_types=["crypto"],
            payment_method_data={"type": "crypto"},
            payment_method_options={"crypto": {"mode": "custom"}},
            confirm=True,
            metadata=dict(self.metadata),
        )
        return intent.to_dict()

    def _retrieve_intent(self, intent_id: str) -> dict[str, Any]:
        return stripe.PaymentIntent.retrieve(intent_id, api_key=self.api_key).to_dict()


def _dig(obj: Any, *keys: str) -> Any:
    for key in keys:
        if isinstance(obj, stripe.StripeObject):
            obj = obj.to_dict()
        if not isinstance(obj, Mapping):
            return None
        obj = obj.get(key)
    return obj
