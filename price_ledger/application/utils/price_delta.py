from __future__ import annotations

from decimal import Decimal

from price_ledger.domain.entities.price_change import ChangeKind, ChangeSpecification

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def apply_price_delta(old_price: Decimal, spec: ChangeSpecification) -> Decimal:
    """
    Compute the price that results from applying spec to old_price.

    Percentages are relative to old_price. A decrease never goes below zero:
    a 150% decrease of 100 is 0, not -50.
    """
    if spec.is_percentage:
        delta = old_price * spec.amount / _HUNDRED
    else:
        delta = spec.amount

    if spec.kind is ChangeKind.increase:
        new_price = old_price + delta
    else:
        new_price = old_price - delta

    return max(new_price, _ZERO)
