from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import FastAPI

from sandwich_api.adapters.inbound.web.fastapi_app import create_app
from sandwich_api.adapters.outbound.demo_deposits import DemoDepositBackend
from sandwich_api.adapters.outbound.json_catalog import JsonMenuCatalog
from sandwich_api.adapters.outbound.stripe_deposits import StripeDepositBackend
from sandwich_api.config import Settings, load_settings
from sandwich_api.core.domain.model.payment import PaymentMode
from sandwich_api.core.domain.service.address_service import (
    AddressDeps,
    PaymentAddressService,
)
from sandwich_api.core.domain.service.menu_service import MenuDeps, MenuService
from sandwich_api.core.domain.service.payment_verification import (
    PaymentProofVerifier,
)
from sandwich_api.core.domain.service.place_order_service import (
    PlaceOrderDeps,
    PlaceOrderService,
)
from sandwich_api.core.ports.outbound.payment import DepositAddressBackend
from sandwich_api.logging_config import setup_logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UseCases:
    place_order: PlaceOrderService
    menu: MenuService
    payments: PaymentAddressService


def build_deposit_backend(settings: Settings) -> DepositAddressBackend:
    if settings.payment_mode is PaymentMode.STRIPE:
        return StripeDepositBackend(api_key=settings.stripe_secret_key)
    logger.warning(
        "DEMO MODE: challenges will carry a placeholder deposit address. "
        "Set PAYMENT_MODE=stripe and STRIPE_SECRET_KEY for real payments."
    )
    return DemoDepositBackend()


def build_usecases(settings: Settings) -> UseCases:
    catalog = JsonMenuCatalog.load(settings.menu_path)
    payments = PaymentAddressService(
        AddressDeps(backend=build_deposit_backend(settings))
    )
    verifier = PaymentProofVerifier(
        strict_amount=settings.strict_amount,
        tolerance_minor_units=settings.amount_tolerance_minor_units,
    )

    place_order = PlaceOrderService(
        PlaceOrderDeps(
            catalog=catalog,
            addresses=payments,
            verifier=verifier,
            network=settings.network,
            resource_url=settings.resource_url,
            payment_timeout_seconds=settings.payment_timeout_seconds,
        )
    )
    menu = MenuService(MenuDeps(catalog=catalog))

    return UseCases(place_order=place_order, menu=menu, payments=payments)


def build_app(settings: Settings) -> FastAPI:
    logger.info(
        "payment mode: %s, network: %s (%s), strict amount: %s",
        settings.payment_mode.value,
        settings.network.chain_id,
        settings.network.display_name,
        settings.strict_amount,
    )
    usecases = build_usecases(settings)
    return create_app(usecases.place_order, usecases.menu, usecases.payments, settings)


def create_asgi_app() -> FastAPI:
    settings = load_settings()
    setup_logging(settings.log_level)
    return build_app(settings)
