from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class PriceRange:
    min: Decimal = Decimal("0")
    max: Decimal = Decimal("0")


@dataclass(frozen=True)
class PreviewItem:
    service_id: str
    name: str | None
    old_price: Decimal
    new_price: Decimal
    difference: Decimal
    percent_difference: Decimal


@dataclass(frozen=True)
class PreviewResult:
    affected_count: int
    current_price_range: PriceRange
    new_price_range: PriceRange
    items: list[PreviewItem] = field(default_factory=list)
