from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Header, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from returns.result import Success

from sandwich_api.config import Settings
from sandwich_api.core.domain.model.errors import (
    BackendUnavailable,
    MenuItemNotFound,
    OrderError,
    PaymentRejected,
    UnknownItems,
    ValidationError,
)
from sandwich_api.core.domain.model.menu import MenuItem, OrderLineSummary, TaxPolicy
from sandwich_api.core.domain.model.order import Order, now_utc
from sandwich_api.core.ports.inbound.menu import MenuUseCase
from sandwich_api.core.ports.inbound.payment_status import PaymentStatusUseCase
from sandwich_api.core.ports.inbound.place_order import (
    CustomerInfo,
    DeliveryAddressInfo,
    OrderConfirmed,
    PaymentRequired,
    PlaceOrderCommand,
    PlaceOrderUseCase,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "PBC x402 Sandwich API"
SERVICE_VERSION = "0.1.0"
PAYMENT_HEADER = "X-PAYMENT"

# ---- HTTP DTOs (adapter layer) ---------------------------------------------


class CustomerIn(BaseModel):
    name: str | None = Field(None, examples=["Ada Lovelace"])
    phone: str | None = Field(None, examples=["+1-718-555-0100"])
    email: str | None = None


class DeliveryAddressIn(BaseModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None


class PlaceOrderRequest(BaseModel):
    # only shapes are checked here; required fields are enforced by the pipeline
    items: list[str] | None = Field(None, examples=[["brisket", "chips"]])
    fulfillment: str | None = Field(None, examples=["pickup"])
    customer: CustomerIn | None = None
    pickup_time: str | None = Field(None, examples=["2026-10-16T12:30:00-04:00"])
    delivery_address: DeliveryAddressIn | None = None
    delivery_window: str | None = None
    location: str | None = Field(None, examples=["shop-1"])


class PricedItemOut(BaseModel):
    id: str
    name: str
    price: str


class OrderPreviewOut(BaseModel):
    items: list[PricedItemOut]
    subtotal: str
    tax: str
    total: str


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AssetOut(_Camel):
    name: str
    decimals: int


class PaymentRequirementsOut(_Camel):
    scheme: str
    network: str
    max_amount_required: str
    resource: str
    pay_to: str
    max_timeout_seconds: int
    extra: AssetOut


class PaymentRequiredResponse(_Camel):
    x402_version: str = "1"
    accepts: list[PaymentRequirementsOut]
    description: str
    mime_type: str = "application/json"
    order_preview: OrderPreviewOut


class CustomerOut(BaseModel):
    name: str
    phone: str
    email: str | None = None


class DeliveryAddressOut(BaseModel):
    street: str
    city: str
    state: str
    zip: str


class PaymentOut(BaseModel):
    method: str
    network: str
    network_name: str
    status: str
    from_address: str | None
    to_address: str | None
    amount_minor_units: int | None


class OrderResponse(BaseModel):
    order_id: str
    status: str
    customer: CustomerOut
    fulfillment: str
    location: str
    pickup_time: str | None = None
    delivery_address: DeliveryAddressOut | None = None
    delivery_window: str | None = None
    items: list[PricedItemOut]
    subtotal: str
    tax: str
    tax_description: str
    total: str
    total_minor_units: int
    payment: PaymentOut
    created_at: str
    note: str


class OrderStatusResponse(BaseModel):
    order_id: str
    status: str
    message: str


class PaymentStatusResponse(BaseModel):
    intent_id: str
    status: str
    amount_minor_units: int
    currency: str


class ErrorResponse(BaseModel):
    type: str
    message: str
    details: Any = None
    hint: str | None = None


# ---- Mapping helpers -------------------------------------------------------


def _to_command(req: PlaceOrderRequest, payment_header: str | None) -> PlaceOrderCommand:
    return PlaceOrderCommand(
        items=tuple(req.items or ()),
        fulfillment=req.fulfillment,
        customer=CustomerInfo(**req.customer.model_dump()) if req.customer else None,
        pickup_time=req.pickup_time,
        delivery_address=(
            DeliveryAddressInfo(**req.delivery_address.model_dump())
            if req.delivery_address
            else None
        ),
        delivery_window=req.delivery_window,
        location=req.location,
        payment_header=payment_header,
    )


def _items_out(summary: OrderLineSummary) -> list[PricedItemOut]:
    return [PricedItemOut(id=i.id, name=i.name, price=str(i.price)) for i in summary.items]


def _menu_item_out(item: MenuItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "price": str(item.price),
        "category": item.category,
    }


def _tax_out(tax: TaxPolicy) -> dict[str, str]:
    return {"rate": str(tax.rate), "description": tax.description}


def _meta(**extra: str) -> dict[str, str]:
    return {"timestamp": now_utc().isoformat(), "currency": "USD", **extra}


def _challenge_body(outcome: PaymentRequired) -> PaymentRequiredResponse:
    ch, preview = outcome.challenge, outcome.preview
    return PaymentRequiredResponse(
        accepts=[
            PaymentRequirementsOut(
                scheme=ch.scheme,
                network=ch.network_id,
                max_amount_required=ch.max_amount,
                resource=ch.resource,
                pay_to=ch.pay_to_address,
                max_timeout_seconds=ch.timeout_seconds,
                extra=AssetOut(name=ch.asset_name, decimals=ch.asset_decimals),
            )
        ],
        description=(
            f"Order {len(preview.items)} item(s) from PBC. Total: ${preview.total} "
            f"(includes ${preview.tax} tax)"
        ),
        order_preview=OrderPreviewOut(
            items=_items_out(preview),
            subtotal=str(preview.subtotal),
            tax=str(preview.tax),
            total=str(preview.total),
        ),
    )


def _order_body(order: Order) -> OrderResponse:
    summary = order.summary
    addr = order.delivery_address
    return OrderResponse(
        order_id=order.order_id.value,
        status=order.status.value,
        customer=CustomerOut(
            name=order.customer.name,
            phone=order.customer.phone,
            email=order.customer.email,
        ),
        fulfillment=order.fulfillment.value,
        location=order.location,
        pickup_time=order.pickup_time,
        delivery_address=(
            DeliveryAddressOut(
                street=addr.street, city=addr.city, state=addr.state, zip=addr.zip
            )
            if addr
            else None
        ),
        delivery_window=order.delivery_window,
        items=_items_out(summary),
        subtotal=str(summary.subtotal),
        tax=str(summary.tax),
        tax_description=order.tax_description,
        total=str(summary.total),
        total_minor_units=summary.total_minor_units,
        payment=PaymentOut(
            method=order.payment.method,
            network=order.payment.network_id,
            network_name=order.payment.network_name,
            status=order.payment.status,
            from_address=order.payment.from_address,
            to_address=order.payment.to_address,
            amount_minor_units=order.payment.amount_minor_units,
        ),
        created_at=order.created_at.isoformat(),
        note=order.note,
    )


def _map_error_to_http(err: OrderError) -> tuple[int, ErrorResponse]:
    name = type(err).__name__

    if isinstance(err, UnknownItems):
        return 400, ErrorResponse(
            type=name,
            message=err.message,
            details={
                "requested_ids": list(err.requested_ids),
                "unknown_ids": list(err.unknown_ids),
            },
        )

    if isinstance(err, ValidationError):
        return 400, ErrorResponse(
            type=name, message=err.message, details={"fields": list(err.fields)}
        )

    if isinstance(err, MenuItemNotFound):
        return 404, ErrorResponse(
            type=name, message=err.message, details={"id": err.item_id}
        )

    if isinstance(err, PaymentRejected):
        return 401, ErrorResponse(
            type=name,
            message=err.message,
            details=err.reason,
            hint=f"Ensure the {PAYMENT_HEADER} header contains a valid base64-encoded payment proof",
        )

    if isinstance(err, BackendUnavailable):
        return 503, ErrorResponse(type=name, message=err.message, hint=err.hint or None)

    return 500, ErrorResponse(type=name, message=str(err))


# ---- App factory -----------------------------------------------------------


def create_app(
    place_order_uc: PlaceOrderUseCase,
    menu_uc: MenuUseCase,
    payment_status_uc: PaymentStatusUseCase,
    settings: Settings,
) -> FastAPI:
    app = FastAPI(title="sandwich_api", version=SERVICE_VERSION)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Location"],
    )

    # --- exception handlers -------------------------------------------------

    @app.exception_handler(OrderError)
    async def handle_domain_error(_: Request, exc: OrderError) -> JSONResponse:
        status, body = _map_error_to_http(exc)
        return JSONResponse(status_code=status, content=body.model_dump())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        _: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        invalid_json = any(e.get("type") == "json_invalid" for e in errors)
        body = ErrorResponse(
            type="RequestValidationError",
            message="Invalid JSON body" if invalid_json else "invalid request",
            details=[
                {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                for e in errors
            ],
        )
        return JSONResponse(status_code=400, content=body.model_dump())

    @app.exception_handler(Exception)
    async def handle_unexpected(_: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled error")
        body = ErrorResponse(type=type(exc).__name__, message="internal server error")
        return JSONResponse(status_code=500, content=body.model_dump())

    # --- routes --------------------------------------------------------------

    @app.get("/")
    def index() -> dict[str, Any]:
        return {
            "name": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "description": "Order Prospect Butcher Co sandwiches with USDC via x402 protocol",
            "network": settings.network.chain_id,
            "payment_mode": settings.payment_mode.value,
            "endpoints": {
                "GET /api/menu": "Get sandwich menu (free)",
                "GET /api/menu/calculate?items=a,b": "Price a list of items (free)",
                "POST /api/order": "Place order (requires x402 USDC payment)",
            },
        }

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/menu")
    def get_menu() -> dict[str, Any]:
        view = menu_uc.get_menu()
        return {
            **{
                category: [_menu_item_out(i) for i in items]
                for category, items in view.categories.items()
            },
            "tax": _tax_out(view.tax),
            "_meta": _meta(
                payment_note="Use POST /api/order to place an order. Payment in USDC via x402 protocol."
            ),
        }

    @app.get("/api/menu/calculate", responses={400: {"model": ErrorResponse}})
    def calculate_menu(items: str | None = Query(None, examples=["brisket,chips"])) -> Any:
        if not items:
            return JSONResponse(
                status_code=400,
                content=ErrorResponse(
                    type="ValidationError",
                    message="Missing items parameter",
                    hint="GET /api/menu/calculate?items=brisket,chips,soda",
                ).model_dump(),
            )

        result = menu_uc.quote(items.split(","))
        if isinstance(result, Success):
            quote = result.unwrap()
            summary = quote.summary
            return {
                "items": [i.model_dump() for i in _items_out(summary)],
                "not_found": list(quote.not_found) or None,
                "subtotal": str(summary.subtotal),
                "tax": str(summary.tax),
                "tax_rate": str(quote.tax.rate),
                "tax_description": quote.tax.description,
                "total": str(summary.total),
                "total_minor_units": summary.total_minor_units,
                "_meta": _meta(),
            }

        raise result.failure()

    @app.get("/api/menu/{item_id}", responses={404: {"model": ErrorResponse}})
    def get_menu_item(item_id: str) -> Any:
        result = menu_uc.get_item(item_id)
        if isinstance(result, Success):
            return {
                "item": _menu_item_out(result.unwrap()),
                "tax": _tax_out(menu_uc.get_menu().tax),
                "_meta": _meta(),
            }

        raise result.failure()

    @app.post(
        "/api/order",
        response_model=OrderResponse,
        status_code=201,
        responses={
            400: {"model": ErrorResponse},
            401: {"model": ErrorResponse},
            402: {"model": PaymentRequiredResponse},
            503: {"model": ErrorResponse},
        },
    )
    async def place_order(
        req: PlaceOrderRequest,
        response: Response,
        x_payment: str | None = Header(None, alias=PAYMENT_HEADER),
    ) -> Any:
        result = await place_order_uc.place_order(_to_command(req, x_payment))

        if isinstance(result, Success):
            outcome = result.unwrap()
            if isinstance(outcome, PaymentRequired):
                return JSONResponse(
                    status_code=402,
                    content=_challenge_body(outcome).model_dump(by_alias=True),
                )
            if isinstance(outcome, OrderConfirmed):
                body = _order_body(outcome.order)
                response.headers["Location"] = f"/api/order/{body.order_id}"
                return body

        raise result.failure()

    @app.get("/api/order/{order_id}", response_model=OrderStatusResponse)
    def get_order(order_id: str) -> Any:
        # orders are not stored; lookup needs a fulfillment backend
        return OrderStatusResponse(
            order_id=order_id,
            status="unknown",
            message="Order lookup not yet implemented.",
        )

    @app.get(
        "/api/payment/{intent_id}",
        response_model=PaymentStatusResponse,
        responses={503: {"model": ErrorResponse}},
    )
    async def get_payment_status(intent_id: str) -> Any:
        result = await payment_status_uc.payment_status(intent_id)
        if isinstance(result, Success):
            status = result.unwrap()
            return PaymentStatusResponse(
                intent_id=status.intent_id,
                status=status.status,
                amount_minor_units=status.amount_minor_units,
                currency=status.currency,
            )

        raise result.failure()

    return app
