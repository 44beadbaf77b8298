from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Mapping, Sequence

from sandwich_api.core.domain.model.menu import MenuItem, TaxPolicy
from sandwich_api.core.domain.model.money import Money

DEFAULT_MENU_PATH = Path(__file__).resolve().parents[2] / "data" / "menu.json"
CATEGORIES = ("sandwiches", "sides", "drinks")


class CatalogError(ValueError):
    pass


@dataclass(frozen=True)
class JsonMenuCatalog:
    tax: TaxPolicy
    _by_category: dict[str, tuple[MenuItem, ...]]
    _by_id: dict[str, MenuItem] = field(default_factory=dict)

    @staticmethod
    def load(path: Path | str | None = None) -> "JsonMenuCatalog":
        with open(path or DEFAULT_MENU_PATH, encoding="utf-8") as fh:
            return JsonMenuCatalog.from_document(json.load(fh, parse_float=Decimal))

    @staticmethod
    def from_document(doc: Mapping[str, Any]) -> "JsonMenuCatalog":
        by_category: dict[str, tuple[MenuItem, ...]] = {}
        by_id: dict[str, MenuItem] = {}
        for category in CATEGORIES:
            items = []
            for raw in doc.get(category, []):
                item = _parse_item(raw, category)
                if item.id in by_id:
                    raise CatalogError(f"duplicate menu item id: {item.id}")
                by_id[item.id] = item
                items.append(item)
            by_category[category] = tuple(items)

        tax_doc = doc.get("tax") or {}
        rate = _decimal(tax_doc.get("rate", 0), "tax.rate")
        if rate < 0:
            raise CatalogError("tax.rate must be >= 0")
        tax = TaxPolicy(rate=rate, description=str(tax_doc.get("description", "")))
        return JsonMenuCatalog(tax=tax, _by_category=by_category, _by_id=by_id)

    def find(self, item_id: str) -> MenuItem | None:
        return self._by_id.get(item_id)

    def categories(self) -> Mapping[str, Sequence[MenuItem]]:
        return dict(self._by_category)


def _parse_item(raw: Mapping[str, Any], category: str) -> MenuItem:
    try:
        item_id = str(raw["id"])
        name = str(raw["name"])
    except KeyError as e:
        raise CatalogError(f"{category}: menu item is missing {e.args[0]!r}") from e
    price = _decimal(raw.get("price"), f"{item_id}.price")
    if price < 0:
        raise CatalogError(f"{item_id}.price must be >= 0")
    return MenuItem(
        id=item_id,
        name=name,
        price=Money.of(price),
        category=category,
        description=str(raw.get("description", "")),
    )


def _decimal(value: Any, label: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise CatalogError(f"{label} is not a number: {value!r}") from e
