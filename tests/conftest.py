from __future__ import annotations

import base64
import json
from typing import Any, Callable, Generator

import pytest
from fastapi.testclient import TestClient
from returns.result import Failure, Result, Success

from sandwich_api.adapters.outbound.demo_deposits import DemoDepositBackend
from sandwich_api.adapters.outbound.json_catalog import JsonMenuCatalog
from sandwich_api.bootstrap import build_app
from sandwich_api.config import Settings
from sandwich_api.core.domain.model.errors import BackendUnavailable, OrderError
from sandwich_api.core.domain.model.payment import (
    DepositAddress,
    Network,
    PaymentIntentStatus,
    PaymentMode,
)
from sandwich_api.core.domain.service.address_service import (
    AddressDeps,
    PaymentAddressService,
)
from sandwich_api.core.domain.service.payment_verification import (
    PaymentProofVerifier,
)
from sandwich_api.core.domain.service.place_order_service import (
    PlaceOrderDeps,
    PlaceOrderService,
)

PAYER = "0x" + "a" * 40
PAY_TO = "0x" + "b" * 40
NOW = 1_760_000_000

_AUTH_KEYS = {"from_": "from", "valid_after": "validAfter", "valid_before": "validBefore"}


# Mark tests by directory
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class RecordingBackend:
    """Deposit backend double that records the amounts it was asked for."""

    def __init__(self, address: str = PAY_TO, fail: bool = False) -> None:
        self.address = address
        self.fail = fail
        self.calls: list[int] = []

    async def create_deposit_address(
        self, amount_minor_units: int
    ) -> Result[DepositAddress, OrderError]:
        self.calls.append(amount_minor_units)
        if self.fail:
            return Failure(
                BackendUnavailable(
                    message="Failed to create payment address: APIConnectionError",
                    hint="Ensure STRIPE_SECRET_KEY is set and crypto payins are enabled",
                )
            )
        return Success(DepositAddress(address=self.address, intent_id="pi_test_123"))

    async def get_status(self, intent_id: str) -> Result[PaymentIntentStatus, OrderError]:
        return Success(
            PaymentIntentStatus(
                intent_id=intent_id,
                status="requires_action",
                amount_minor_units=1359,
                currency="usd",
            )
        )


@pytest.fixture(scope="session")
def catalog() -> JsonMenuCatalog:
    return JsonMenuCatalog.load()


@pytest.fixture
def proof_header() -> Callable[..., str]:
    """Build a base64 X-PAYMENT header; pass `None` to drop a field."""

    def _build(
        signature: str | None = "0xsig",
        **authorization: Any,
    ) -> str:
        auth: dict[str, Any] = {
            "from": PAYER,
            "to": PAY_TO,
            "value": "13590000",
            "validAfter": NOW - 60,
            "validBefore": NOW + 300,
            "nonce": "0x01",
        }
        for key, value in authorization.items():
            key = _AUTH_KEYS.get(key, key)
            if value is None:
                auth.pop(key, None)
            else:
                auth[key] = value
        payload: dict[str, Any] = {"authorization": auth}
        if signature is not None:
            payload["signature"] = signature
        doc = {
            "x402Version": "1",
            "scheme": "exact",
            "network": "eip155:84532",
            "payload": payload,
        }
        return base64.b64encode(json.dumps(doc).encode()).decode()

    return _build


@pytest.fixture
def encode() -> Callable[[Any], str]:
    def _encode(doc: Any) -> str:
        return base64.b64encode(json.dumps(doc).encode()).decode()

    return _encode


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def make_service(catalog) -> Callable[..., PlaceOrderService]:
    def _make(
        backend: Any = None,
        strict_amount: bool = False,
        clock: Callable[[], int] = lambda: NOW,
        production: bool = False,
    ) -> PlaceOrderService:
        return PlaceOrderService(
            PlaceOrderDeps(
                catalog=catalog,
                addresses=PaymentAddressService(
                    AddressDeps(backend=backend or RecordingBackend())
                ),
                verifier=PaymentProofVerifier(strict_amount=strict_amount),
                network=Network.for_environment(production),
                clock=clock,
            )
        )

    return _make


@pytest.fixture
def settings() -> Settings:
    return Settings(payment_mode=PaymentMode.DEMO)


@pytest.fixture
def client(settings) -> Generator[TestClient, None, None]:
    with TestClient(build_app(settings)) as c:
        yield c


@pytest.fixture
def demo_backend() -> DemoDepositBackend:
    return DemoDepositBackend()
