from __future__ import annotations

import logging
from dataclasses import dataclass

from returns.result import Result, Success

from sandwich_api.core.domain.model.errors import OrderError
from sandwich_api.core.domain.model.payment import PaymentIntentStatus
from sandwich_api.core.domain.service.payment_verification import (
    destination_from_header,
)
from sandwich_api.core.ports.inbound.payment_status import PaymentStatusUseCase
from sandwich_api.core.ports.outbound.payment import DepositAddressBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AddressDeps:
    backend: DepositAddressBackend


@dataclass(frozen=True)
class PaymentAddressService(PaymentStatusUseCase):
    deps: AddressDeps

    async def provision(
        self, amount_minor_units: int, existing_proof_header: str | None = None
    ) -> Result[str, OrderError]:
        # a retried request that already carries proof keeps its address
        if existing_proof_header:
            reused = destination_from_header(existing_proof_header)
            if reused is not None:
                logger.debug("reusing pay-to address %s from proof header", reused)
                return Success(reused)

        return (
            await self.deps.backend.create_deposit_address(amount_minor_units)
        ).map(lambda deposit: deposit.address)

    async def payment_status(
        self, intent_id: str
    ) -> Result[PaymentIntentStatus, OrderError]:
        return await self.deps.backend.get_status(intent_id)
