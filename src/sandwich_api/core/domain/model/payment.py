from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

USDC_DECIMALS = 6
CURRENCY_DECIMALS = 2


class PaymentMode(str, Enum):
    STRIPE = "stripe"
    DEMO = "demo"


@dataclass(frozen=True)
class Network:
    chain_id: str
    display_name: str
    is_production: bool

    @staticmethod
    def for_environment(production: bool) -> "Network":
        if production:
            return Network("eip155:8453", "Base Mainnet", True)
        return Network("eip155:84532", "Base Sepolia (testnet)", False)


@dataclass(frozen=True)
class PaymentChallenge:
    scheme: str
    network_id: str
    max_amount: str  # decimal string, e.g. "13.59"
    resource: str
    pay_to_address: str
    timeout_seconds: int
    asset_decimals: int = USDC_DECIMALS
    asset_name: str = "USDC"


@dataclass(frozen=True)
class Authorization:
    from_address: str
    to_address: str
    value: int | None = None  # asset minor units (10^-6 USDC)
    valid_after: int | None = None
    valid_before: int | None = None
    nonce: str | None = None


@dataclass(frozen=True)
class PaymentProof:
    signature: str
    authorization: Authorization
    scheme_version: str | None = None
    scheme: str | None = None
    network: str | None = None


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    from_address: str | None = None
    to_address: str | None = None
    amount_minor_units: int | None = None
    error_reason: str | None = None
    warnings: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DepositAddress:
    address: str
    intent_id: str | None = None


@dataclass(frozen=True)
class PaymentIntentStatus:
    intent_id: str
    status: str
    amount_minor_units: int
    currency: str


def asset_units_to_minor_units(
    value: int,
    asset_decimals: int = USDC_DECIMALS,
    currency_decimals: int = CURRENCY_DECIMALS,
) -> int:
    """Convert on-chain fixed-point units to currency minor units.

    13590000 USDC units (6 decimals) -> 1359 cents. Sub-cent remainders are
    truncated.
    """
    return value // 10 ** (asset_decimals - currency_decimals)


def minor_units_to_asset_units(
    minor_units: int,
    asset_decimals: int = USDC_DECIMALS,
    currency_decimals: int = CURRENCY_DECIMALS,
) -> int:
    return minor_units * 10 ** (asset_decimals - currency_decimals)
