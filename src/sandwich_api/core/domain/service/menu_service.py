from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from returns.result import Failure, Result, Success

from sandwich_api.core.domain.model.errors import (
    MenuItemNotFound,
    OrderError,
    ValidationError,
)
from sandwich_api.core.domain.model.menu import MenuItem
from sandwich_api.core.domain.service.pricing import calculate, unknown_item_ids
from sandwich_api.core.ports.inbound.menu import MenuUseCase, MenuView, QuoteView
from sandwich_api.core.ports.outbound.catalog import Catalog


@dataclass(frozen=True)
class MenuDeps:
    catalog: Catalog


@dataclass(frozen=True)
class MenuService(MenuUseCase):
    deps: MenuDeps

    def get_menu(self) -> MenuView:
        return MenuView(
            categories=self.deps.catalog.categories(), tax=self.deps.catalog.tax
        )

    def get_item(self, item_id: str) -> Result[MenuItem, OrderError]:
        item = self.deps.catalog.find(item_id)
        if item is None:
            return Failure(MenuItemNotFound(message="Item not found", item_id=item_id))
        return Success(item)

    def quote(self, item_ids: Sequence[str]) -> Result[QuoteView, OrderError]:
        ids = tuple(i.strip() for i in item_ids if i.strip())
        if not ids:
            return Failure(
                ValidationError(message="Missing items parameter", fields=("items",))
            )
        return Success(
            QuoteView(
                summary=calculate(self.deps.catalog, ids),
                not_found=unknown_item_ids(self.deps.catalog, ids),
                tax=self.deps.catalog.tax,
            )
        )
