"""
Runtime configuration.

Values come from the process environment, after loading a `.env` file from
the working directory (existing environment variables win). Everything is
resolved once, at startup, into an immutable `Settings`.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from sandwich_api.core.domain.model.payment import Network, PaymentMode

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class Settings:
    app_env: str = "development"
    payment_mode: PaymentMode = PaymentMode.DEMO
    stripe_secret_key: str = field(default="", repr=False)
    strict_amount: bool = False
    amount_tolerance_minor_units: int = 1
    payment_timeout_seconds: int = 300
    resource_url: str = "https://x402.org/facilitator"
    menu_path: Path | None = None
    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def network(self) -> Network:
        return Network.for_environment(self.is_production)


def _clean_env(v: str | None) -> str:
    # strips whitespace and quotes pasted along with the value
    return (v or "").strip().strip("'").strip('"').strip("`")


def _flag(v: str, default: bool = False) -> bool:
    if not v:
        return default
    return v.lower() in ("1", "true", "yes", "on")


def _int(v: str, name: str, default: int) -> int:
    if not v:
        return default
    try:
        return int(v)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {v!r}") from e


def resolve_payment_mode(raw_mode: str, stripe_secret_key: str) -> PaymentMode:
    if not raw_mode:
        mode = PaymentMode.STRIPE if stripe_secret_key else PaymentMode.DEMO
        logger.warning("PAYMENT_MODE not set; resolved to %r", mode.value)
        return mode
    try:
        mode = PaymentMode(raw_mode.lower())
    except ValueError as e:
        raise ConfigError(
            f"PAYMENT_MODE must be 'stripe' or 'demo', got {raw_mode!r}"
        ) from e
    if mode is PaymentMode.STRIPE and not stripe_secret_key:
        raise ConfigError("PAYMENT_MODE=stripe requires STRIPE_SECRET_KEY")
    return mode


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    if environ is None:
        load_dotenv(override=False)
        environ = os.environ

    def get(name: str) -> str:
        return _clean_env(environ.get(name))

    stripe_key = get("STRIPE_SECRET_KEY")
    menu_path = get("MENU_PATH")
    origins = [o.strip() for o in (get("CORS_ORIGINS") or "*").split(",") if o.strip()]

    return Settings(
        app_env=(get("APP_ENV") or get("NODE_ENV") or "development").lower(),
        payment_mode=resolve_payment_mode(get("PAYMENT_MODE"), stripe_key),
        stripe_secret_key=stripe_key,
        strict_amount=_flag(get("PAYMENT_STRICT_AMOUNT")),
        payment_timeout_seconds=_int(
            get("PAYMENT_TIMEOUT_SECONDS"), "PAYMENT_TIMEOUT_SECONDS", 300
        ),
        resource_url=get("PAYMENT_RESOURCE_URL") or "https://x402.org/facilitator",
        menu_path=Path(menu_path) if menu_path else None,
        cors_origins=tuple(origins),
        log_level=(get("LOG_LEVEL") or "INFO").upper(),
        host=get("HOST") or "0.0.0.0",
        port=_int(get("PORT"), "PORT", 3000),
    )
