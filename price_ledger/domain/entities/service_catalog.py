from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class ServiceCatalogEntry:
    id: str
    price: Decimal
    category_id: str | None = None
    is_active: bool = True
    name: str | None = None


@dataclass(frozen=True)
class Category:
    id: str
    name: str
