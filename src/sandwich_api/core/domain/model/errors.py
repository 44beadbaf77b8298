from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OrderError(Exception):
    message: str

    def __str__(self) -> str:  # pragma: no cover
        return self.message


@dataclass(frozen=True)
class ValidationError(OrderError):
    fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class UnknownItems(ValidationError):
    requested_ids: tuple[str, ...] = ()
    unknown_ids: tuple[str, ...] = ()

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.message}: {', '.join(self.unknown_ids)}"


@dataclass(frozen=True)
class MenuItemNotFound(OrderError):
    item_id: str

    def __str__(self) -> str:  # pragma: no cover
        return f"menu_item_not_found: {self.item_id} ({self.message})"


@dataclass(frozen=True)
class PaymentRejected(OrderError):
    reason: str

    def __str__(self) -> str:  # pragma: no cover
        return f"payment_rejected: {self.reason} ({self.message})"


@dataclass(frozen=True)
class BackendUnavailable(OrderError):
    hint: str = ""

    def __str__(self) -> str:  # pragma: no cover
        return f"backend_unavailable: {self.message}"
