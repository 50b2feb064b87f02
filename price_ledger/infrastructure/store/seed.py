from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

from price_ledger.domain.entities.service_catalog import Category, ServiceCatalogEntry


def load_catalog_seed(path: str) -> tuple[list[ServiceCatalogEntry], list[Category]]:
    """
    Read catalog entries and categories from a seed file:

        {"categories": [{"id": "c1", "name": "Hair"}],
         "services": [{"id": "s1", "name": "Cut", "price": "100", "category_id": "c1"}]}
    """
    with open(Path(path), "r", encoding="utf-8") as f:
        data = json.load(f)

    categories = [Category(id=item["id"], name=item["name"]) for item in data.get("categories", [])]
    entries = [
        ServiceCatalogEntry(
            id=item["id"],
            name=item.get("name"),
            price=Decimal(str(item["price"])),
            category_id=item.get("category_id"),
            is_active=item.get("is_active", True),
        )
        for item in data.get("services", [])
    ]
    return entries, categories
