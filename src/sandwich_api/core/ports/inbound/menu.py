from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Protocol, Sequence

from returns.result import Result

from sandwich_api.core.domain.model.errors import OrderError
from sandwich_api.core.domain.model.menu import MenuItem, OrderLineSummary, TaxPolicy


@dataclass(frozen=True)
class MenuView:
    categories: Mapping[str, Sequence[MenuItem]]
    tax: TaxPolicy


@dataclass(frozen=True)
class QuoteView:
    summary: OrderLineSummary
    not_found: tuple[str, ...]
    tax: TaxPolicy


class MenuUseCase(Protocol):
    def get_menu(self) -> MenuView: ...

    def get_item(self, item_id: str) -> Result[MenuItem, OrderError]: ...

    def quote(self, item_ids: Sequence[str]) -> Result[QuoteView, OrderError]: ...
