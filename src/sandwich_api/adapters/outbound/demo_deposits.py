from __future__ import annotations

import logging
from dataclasses import dataclass

from returns.result import Result, Success

from sandwich_api.core.domain.model.errors import OrderError
from sandwich_api.core.domain.model.payment import DepositAddress, PaymentIntentStatus
from sandwich_api.core.ports.outbound.payment import DepositAddressBackend

logger = logging.getLogger(__name__)

DEMO_DEPOSIT_ADDRESS = "0xDEMO_ADDRESS_SET_STRIPE_SECRET_KEY_FOR_REAL_PAYMENTS"


@dataclass(frozen=True)
class DemoDepositBackend(DepositAddressBackend):
    """Fixed placeholder address; selected only when PAYMENT_MODE is demo."""

    address: str = DEMO_DEPOSIT_ADDRESS

    async def create_deposit_address(
        self, amount_minor_units: int
    ) -> Result[DepositAddress, OrderError]:
        logger.warning(
            "DEMO MODE: returning placeholder deposit address for %s cents. "
            "Set PAYMENT_MODE=stripe and STRIPE_SECRET_KEY for real payments.",
            amount_minor_units,
        )
        return Success(DepositAddress(address=self.address))

    async def get_status(
        self, intent_id: str
    ) -> Result[PaymentIntentStatus, OrderError]:
        return Success(
            PaymentIntentStatus(
                intent_id=intent_id, status="demo", amount_minor_units=0, currency="usd"
            )
        )
