"""
x402 payment proof decoding and verification.

The `X-PAYMENT` header is base64-encoded JSON:

    {
      "x402Version": "1",
      "scheme": "exact",
      "network": "eip155:84532",
      "payload": {
        "signature": "0x...",
        "authorization": {
          "from": "0x...",        # payer
          "to": "0x...",          # deposit address (payTo)
          "value": "13590000",    # USDC units, 6 decimals
          "validAfter": 1700000000,
          "validBefore": 1700000300,
          "nonce": "0x..."
        }
      }
    }

Standard or URL-safe base64 is accepted, with or without padding. Integer
fields may arrive as JSON numbers (integral floats included) or numeric
strings.

Checks run in a fixed order and the first failure wins, so a given malformed
header always produces the same reason.

NOTE: the signature is only checked for presence. Verifying it against the
authorization, and confirming the transfer on-chain, is still required before
this can take real money.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from dataclasses import dataclass, replace
from typing import Any

from returns.pipeline import flow
from returns.pointfree import bind, map_
from returns.result import Failure, Result, Success

from sandwich_api.core.domain.model.errors import PaymentRejected
from sandwich_api.core.domain.model.payment import (
    Authorization,
    PaymentProof,
    VerificationResult,
    asset_units_to_minor_units,
)

logger = logging.getLogger(__name__)

MALFORMED = "malformed proof"
MISSING_AUTHORIZATION = "missing payload/authorization"
INVALID_ADDRESS = "invalid address"
MISSING_SIGNATURE = "missing signature"
AMOUNT_MISMATCH = "amount mismatch"
NOT_YET_VALID = "not yet valid"
EXPIRED = "expired"

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_URLSAFE = str.maketrans("-_", "+/")


@dataclass(frozen=True)
class _Checked:
    proof: PaymentProof
    amount_minor_units: int | None = None
    warnings: tuple[str, ...] = ()


def _reject(reason: str) -> Failure[PaymentRejected]:
    return Failure(PaymentRejected(message="Invalid payment header", reason=reason))


def decode_proof_header(header: str) -> Result[dict[str, Any], PaymentRejected]:
    try:
        raw = base64.b64decode(_standard_base64(header), validate=True)
        doc = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return _reject(MALFORMED)
    if not isinstance(doc, dict):
        return _reject(MALFORMED)
    return Success(doc)


def _standard_base64(header: str) -> str:
    # clients may send URL-safe base64 and drop the padding
    text = header.strip().translate(_URLSAFE)
    return text + "=" * (-len(text) % 4)


def destination_from_header(header: str) -> str | None:
    """The `to` address a proof header points at, if it decodes."""

    def _dig(doc: dict[str, Any]) -> str | None:
        payload = doc.get("payload")
        auth = payload.get("authorization") if isinstance(payload, dict) else None
        to = auth.get("to") if isinstance(auth, dict) else None
        return to if isinstance(to, str) and to else None

    return decode_proof_header(header).map(_dig).value_or(None)


def parse_payment_proof(doc: dict[str, Any]) -> Result[PaymentProof, PaymentRejected]:
    payload = doc.get("payload")
    if not isinstance(payload, dict):
        return _reject(MISSING_AUTHORIZATION)
    auth = payload.get("authorization")
    if not isinstance(auth, dict):
        return _reject(MISSING_AUTHORIZATION)

    from_address = auth.get("from")
    to_address = auth.get("to")
    if not _is_address(from_address) or not _is_address(to_address):
        return _reject(INVALID_ADDRESS)

    signature = payload.get("signature")
    if not isinstance(signature, str) or not signature.strip():
        return _reject(MISSING_SIGNATURE)

    try:
        value = _optional_int(auth.get("value"))
        valid_after = _optional_int(auth.get("validAfter"))
        valid_before = _optional_int(auth.get("validBefore"))
    except ValueError:
        return _reject(MALFORMED)
    if value is not None and value < 0:
        return _reject(MALFORMED)

    nonce = auth.get("nonce")
    version = doc.get("x402Version")
    return Success(
        PaymentProof(
            signature=signature,
            authorization=Authorization(
                from_address=from_address,
                to_address=to_address,
                value=value,
                valid_after=valid_after,
                valid_before=valid_before,
                nonce=nonce if isinstance(nonce, str) else None,
            ),
            scheme_version=None if version is None else str(version),
            scheme=doc.get("scheme") if isinstance(doc.get("scheme"), str) else None,
            network=doc.get("network") if isinstance(doc.get("network"), str) else None,
        )
    )


@dataclass(frozen=True)
class PaymentProofVerifier:
    """
    Structural and semantic checks on a payment proof.

    strict_amount=False keeps the relaxed behaviour used on testnet: a value
    outside `tolerance_minor_units` of the expected amount is logged and
    reported in `warnings` but accepted. Production deployments should run
    with strict_amount=True.
    """

    strict_amount: bool = False
    tolerance_minor_units: int = 1

    def verify(
        self, proof_header: str, expected_amount_minor_units: int, now_unix_seconds: int
    ) -> VerificationResult:
        result = flow(
            proof_header,
            decode_proof_header,
            bind(parse_payment_proof),
            map_(_Checked),
            bind(lambda c: self._reconcile_amount(c, expected_amount_minor_units)),
            bind(lambda c: _check_window(c, now_unix_seconds)),
        )

        if isinstance(result, Failure):
            err = result.failure()
            logger.info("payment proof rejected: %s", err.reason)
            return VerificationResult(valid=False, error_reason=err.reason)

        checked = result.unwrap()
        auth = checked.proof.authorization
        logger.info(
            "payment proof accepted from=%s to=%s amount=%s expected=%s",
            auth.from_address,
            auth.to_address,
            checked.amount_minor_units,
            expected_amount_minor_units,
        )
        return VerificationResult(
            valid=True,
            from_address=auth.from_address,
            to_address=auth.to_address,
            amount_minor_units=checked.amount_minor_units,
            warnings=checked.warnings,
        )

    def _reconcile_amount(
        self, checked: _Checked, expected: int
    ) -> Result[_Checked, PaymentRejected]:
        value = checked.proof.authorization.value
        if value is None:
            return Success(checked)

        amount = asset_units_to_minor_units(value)
        checked = replace(checked, amount_minor_units=amount)
        if abs(amount - expected) <= self.tolerance_minor_units:
            return Success(checked)

        if self.strict_amount:
            return _reject(AMOUNT_MISMATCH)
        logger.warning(
            "amount mismatch: expected %s cents, got %s cents", expected, amount
        )
        return Success(
            replace(
                checked,
                warnings=checked.warnings
                + (f"{AMOUNT_MISMATCH}: expected {expected}, got {amount}",),
            )
        )


def _check_window(checked: _Checked, now: int) -> Result[_Checked, PaymentRejected]:
    auth = checked.proof.authorization
    if auth.valid_after is not None and now < auth.valid_after:
        return _reject(NOT_YET_VALID)
    if auth.valid_before is not None and now > auth.valid_before:
        return _reject(EXPIRED)
    return Success(checked)


def _is_address(value: Any) -> bool:
    return isinstance(value, str) and _ADDRESS_RE.match(value) is not None


def _optional_int(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("boolean is not an amount")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    raise ValueError(f"not an integer: {value!r}")
