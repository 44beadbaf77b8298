from __future__ import annotations

from typing import Sequence

from sandwich_api.core.domain.model.menu import OrderLineSummary, PricedItem
from sandwich_api.core.domain.model.money import fold_money
from sandwich_api.core.ports.outbound.catalog import Catalog


def calculate(catalog: Catalog, item_ids: Sequence[str]) -> OrderLineSummary:
    """Price `item_ids` against the catalog.

    Unknown ids are dropped; each occurrence of a duplicate id is priced as
    its own line, in request order.
    """
    found: list[PricedItem] = []
    for item_id in item_ids:
        item = catalog.find(item_id)
        if item is not None:
            found.append(PricedItem(id=item.id, name=item.name, price=item.price))

    subtotal = fold_money(it.price for it in found)
    tax = subtotal.times_rate(catalog.tax.rate)
    return OrderLineSummary(
        items=tuple(found),
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
    )


def unknown_item_ids(catalog: Catalog, item_ids: Sequence[str]) -> tuple[str, ...]:
    return tuple(i for i in item_ids if catalog.find(i) is None)
