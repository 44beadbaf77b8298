from __future__ import annotations

from typing import Protocol

from returns.result import Result

from sandwich_api.core.domain.model.errors import OrderError
from sandwich_api.core.domain.model.payment import PaymentIntentStatus


class PaymentStatusUseCase(Protocol):
    async def payment_status(
        self, intent_id: str
    ) -> Result[PaymentIntentStatus, OrderError]: ...
