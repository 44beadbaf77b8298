from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class Money:
    amount: Decimal
    currency: str = "USD"

    @staticmethod
    def of(amount: Decimal | int | str, currency: str = "USD") -> "Money":
        dec = Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP)
        return Money(dec, currency)

    @staticmethod
    def zero(currency: str = "USD") -> "Money":
        return Money.of(0, currency=currency)

    @property
    def minor_units(self) -> int:
        return int((self.amount * 100).to_integral_value(rounding=ROUND_HALF_UP))

    def __add__(self, other: "Money") -> "Money":
        self._assert_same_currency(other)
        return Money.of(self.amount + other.amount, self.currency)

    def times_rate(self, rate: Decimal) -> "Money":
        return Money.of(self.amount * rate, self.currency)

    def __str__(self) -> str:
        return f"{self.amount:.2f}"

    def _assert_same_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise ValueError(f"currency_mismatch: {self.currency} vs {other.currency}")


def fold_money(values: Iterable[Money], currency: str = "USD") -> Money:
    total = Money.zero(currency=currency)
    for v in values:
        total = total + v
    return total
