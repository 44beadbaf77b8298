from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sandwich_api.core.domain.model.money import Money


@dataclass(frozen=True)
class MenuItem:
    id: str
    name: str
    price: Money
    category: str
    description: str = ""


@dataclass(frozen=True)
class TaxPolicy:
    rate: Decimal
    description: str


@dataclass(frozen=True)
class PricedItem:
    id: str
    name: str
    price: Money


@dataclass(frozen=True)
class OrderLineSummary:
    """Priced view of a list of item ids.

    `tax` and `total` are rounded once, so `total == subtotal + tax` holds
    exactly for every summary built by the price calculator.
    """

    items: tuple[PricedItem, ...]
    subtotal: Money
    tax: Money
    total: Money

    @property
    def total_minor_units(self) -> int:
        return self.total.minor_units

    @property
    def is_empty(self) -> bool:
        return not self.items
