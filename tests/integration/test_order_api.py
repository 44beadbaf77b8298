import pytest
from fastapi.testclient import TestClient

from sandwich_api.adapters.inbound.web.fastapi_app import create_app
from sandwich_api.adapters.outbound.demo_deposits import DEMO_DEPOSIT_ADDRESS
from sandwich_api.core.domain.service.address_service import (
    AddressDeps,
    PaymentAddressService,
)
from sandwich_api.core.domain.service.menu_service import MenuDeps, MenuService

PAYER = "0x" + "a" * 40

PICKUP_ORDER = {
    "items": ["brisket", "chips"],
    "fulfillment": "pickup",
    "customer": {"name": "Ada", "phone": "555-0100", "email": "ada@example.com"},
    "pickup_time": "12:30",
}

DELIVERY_ORDER = {
    "items": ["porchetta", "soda"],
    "fulfillment": "delivery",
    "customer": {"name": "Ada", "phone": "555-0100"},
    "delivery_address": {
        "street": "1 Main St",
        "city": "Brooklyn",
        "state": "NY",
        "zip": "11201",
    },
    "delivery_window": "18:00-19:00",
    "location": "shop-2",
}


@pytest.fixture
def paid(proof_header):
    """A proof without a validity window, so it holds against the real clock."""
    return proof_header(valid_after=None, valid_before=None)


def test_order_without_payment_returns_402_challenge(client):
    resp = client.post("/api/order", json=PICKUP_ORDER)

    assert resp.status_code == 402
    body = resp.json()
    assert body["x402Version"] == "1"
    assert body["mimeType"] == "application/json"

    (accept,) = body["accepts"]
    assert accept["scheme"] == "exact"
    assert accept["network"] == "eip155:84532"
    assert accept["maxAmountRequired"] == "13.59"
    assert accept["payTo"] == DEMO_DEPOSIT_ADDRESS
    assert accept["maxTimeoutSeconds"] == 300
    assert accept["extra"] == {"name": "USDC", "decimals": 6}

    preview = body["orderPreview"]
    assert [i["id"] for i in preview["items"]] == ["brisket", "chips"]
    assert preview["subtotal"] == "12.50"
    assert preview["tax"] == "1.09"
    assert preview["total"] == "13.59"
    assert "$13.59" in body["description"]


def test_challenge_needs_only_items(client):
    resp = client.post("/api/order", json={"items": ["soda"]})
    assert resp.status_code == 402


def test_empty_payment_header_gets_a_challenge(client):
    resp = client.post("/api/order", json=PICKUP_ORDER, headers={"X-PAYMENT": ""})
    assert resp.status_code == 402


def test_unknown_items_return_400(client):
    resp = client.post("/api/order", json={"items": ["not-a-real-id"]})

    assert resp.status_code == 400
    body = resp.json()
    assert body["type"] == "UnknownItems"
    assert body["message"] == "No valid items found"
    assert body["details"]["unknown_ids"] == ["not-a-real-id"]


@pytest.mark.parametrize("payload", [{}, {"items": []}])
def test_missing_items_return_400(client, payload):
    resp = client.post("/api/order", json=payload)

    assert resp.status_code == 400
    assert resp.json()["message"] == "No items specified"


def test_invalid_json_returns_400(client):
    resp = client.post(
        "/api/order",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid JSON body"


def test_wrongly_typed_body_returns_400(client):
    resp = client.post("/api/order", json={"items": "brisket"})

    assert resp.status_code == 400
    assert resp.json()["type"] == "RequestValidationError"


def test_malformed_proof_returns_401(client):
    resp = client.post("/api/order", json=PICKUP_ORDER, headers={"X-PAYMENT": "%%%"})

    assert resp.status_code == 401
    body = resp.json()
    assert body["type"] == "PaymentRejected"
    assert body["details"] == "malformed proof"
    assert "X-PAYMENT" in body["hint"]


def test_expired_proof_returns_401(client, proof_header):
    header = proof_header(valid_after=None, valid_before=1)

    resp = client.post("/api/order", json=PICKUP_ORDER, headers={"X-PAYMENT": header})

    assert resp.status_code == 401
    assert resp.json()["details"] == "expired"


def test_paid_pickup_order_is_confirmed(client, paid):
    resp = client.post("/api/order", json=PICKUP_ORDER, headers={"X-PAYMENT": paid})

    assert resp.status_code == 201
    body = resp.json()
    assert body["order_id"].startswith("PBC-")
    assert resp.headers["Location"] == f"/api/order/{body['order_id']}"
    assert body["status"] == "confirmed"
    assert body["fulfillment"] == "pickup"
    assert body["pickup_time"] == "12:30"
    assert body["delivery_address"] is None
    assert body["location"] == "shop-1"
    assert body["customer"]["email"] == "ada@example.com"
    assert body["subtotal"] == "12.50"
    assert body["tax"] == "1.09"
    assert body["total"] == "13.59"
    assert body["total_minor_units"] == 1359
    assert body["payment"]["from_address"] == PAYER
    assert body["payment"]["amount_minor_units"] == 1359
    assert body["payment"]["network"] == "eip155:84532"
    assert body["payment"]["status"] == "verified"
    assert "Testnet" in body["note"]


def test_paid_delivery_order_is_confirmed(client, paid):
    resp = client.post("/api/order", json=DELIVERY_ORDER, headers={"X-PAYMENT": paid})

    assert resp.status_code == 201
    body = resp.json()
    assert body["fulfillment"] == "delivery"
    assert body["pickup_time"] is None
    assert body["delivery_address"]["zip"] == "11201"
    assert body["delivery_window"] == "18:00-19:00"
    assert body["location"] == "shop-2"


def test_repeated_orders_get_distinct_ids(client, paid):
    ids = {
        client.post("/api/order", json=PICKUP_ORDER, headers={"X-PAYMENT": paid}).json()[
            "order_id"
        ]
        for _ in range(3)
    }
    assert len(ids) == 3


def test_paid_order_missing_customer_returns_400(client, paid):
    order = {k: v for k, v in PICKUP_ORDER.items() if k != "customer"}

    resp = client.post("/api/order", json=order, headers={"X-PAYMENT": paid})

    assert resp.status_code == 400
    assert resp.json()["message"] == "Customer name and phone required"


def test_paid_delivery_with_incomplete_address_returns_400(client, paid):
    order = {**DELIVERY_ORDER, "delivery_address": {"street": "1 Main St"}}

    resp = client.post("/api/order", json=order, headers={"X-PAYMENT": paid})

    assert resp.status_code == 400
    assert resp.json()["details"]["fields"] == [
        "delivery_address.city",
        "delivery_address.state",
        "delivery_address.zip",
    ]


def test_order_lookup_is_a_placeholder(client):
    resp = client.get("/api/order/PBC-123")

    assert resp.status_code == 200
    assert resp.json() == {
        "order_id": "PBC-123",
        "status": "unknown",
        "message": "Order lookup not yet implemented.",
    }


def test_backend_outage_returns_503(make_service, backend, catalog, settings):
    backend.fail = True
    app = create_app(
        make_service(backend),
        MenuService(MenuDeps(catalog=catalog)),
        PaymentAddressService(AddressDeps(backend=backend)),
        settings,
    )

    with TestClient(app) as c:
        resp = c.post("/api/order", json=PICKUP_ORDER)

    assert resp.status_code == 503
    body = resp.json()
    assert body["type"] == "BackendUnavailable"
    assert body["message"].startswith("Failed to create payment address")
    assert "STRIPE_SECRET_KEY" in body["hint"]
