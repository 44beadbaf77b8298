from __future__ import annotations

from typing import Protocol

from returns.result import Result

from sandwich_api.core.domain.model.errors import OrderError
from sandwich_api.core.domain.model.payment import (
    DepositAddress,
    PaymentIntentStatus,
)


class DepositAddressBackend(Protocol):
    async def create_deposit_address(
        self, amount_minor_units: int
    ) -> Result[DepositAddress, OrderError]: ...

    async def get_status(
        self, intent_id: str
    ) -> Result[PaymentIntentStatus, OrderError]: ...
