from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from price_ledger.domain.exceptions import ValidationError


class ChangeKind(str, Enum):
    increase = "increase"
    decrease = "decrease"


@dataclass(frozen=True)
class ChangeSpecification:
    """
    A requested bulk price change.

    Construction validates and normalizes the fields, so an instance that
    exists is always usable by the preview, apply and revert flows.
    An empty category_id means "all categories".
    """

    kind: ChangeKind
    amount: Decimal
    is_percentage: bool = True
    category_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", _coerce_kind(self.kind))
        object.__setattr__(self, "amount", coerce_amount(self.amount))
        if not isinstance(self.is_percentage, bool):
            raise ValidationError("is_percentage must be a boolean")
        category_id = self.category_id
        if category_id is not None:
            if not isinstance(category_id, str):
                raise ValidationError("category_id must be a string")
            if category_id == "":
                category_id = None
            elif not category_id.strip():
                raise ValidationError("category_id must not be blank")
            else:
                category_id = category_id.strip()
        object.__setattr__(self, "category_id", category_id)


def _coerce_kind(value: Any) -> ChangeKind:
    if isinstance(value, ChangeKind):
        return value
    if isinstance(value, str):
        try:
            return ChangeKind(value.strip().lower())
        except ValueError:
            pass
    raise ValidationError(f"Unknown change kind: {value!r}")


def coerce_amount(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError("amount must be a number")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"amount is not a number: {value!r}") from None
    if not amount.is_finite():
        raise ValidationError("amount must be finite")
    if amount <= 0:
        raise ValidationError("amount must be greater than zero")
    return amount
