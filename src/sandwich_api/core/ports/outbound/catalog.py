from __future__ import annotations

from typing import Mapping, Protocol, Sequence

from sandwich_api.core.domain.model.menu import MenuItem, TaxPolicy


class Catalog(Protocol):
    """Read-only menu, loaded once at startup and shared across requests."""

    @property
    def tax(self) -> TaxPolicy: ...

    def find(self, item_id: str) -> MenuItem | None: ...

    def categories(self) -> Mapping[str, Sequence[MenuItem]]: ...
