from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from price_ledger.domain.entities.service_catalog import Category, ServiceCatalogEntry
from price_ledger.infrastructure.store.memory_store import MemoryLedgerStore


class FrozenClock:
    """Clock that only moves when told to, so ties on created_at are easy to produce."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current = self.current + timedelta(seconds=seconds)


def _read_prices(store) -> dict[str, Decimal]:
    with store.read() as session:
        return {entry.id: entry.price for entry in session.catalog.list_entries()}


@pytest.fixture
def catalog_entries() -> list[ServiceCatalogEntry]:
    return [
        ServiceCatalogEntry(id="s1", name="Haircut", price=Decimal("100"), category_id="c1"),
        ServiceCatalogEntry(id="s2", name="Manicure", price=Decimal("200"), category_id="c2"),
        ServiceCatalogEntry(id="s3", name="Blow dry", price=Decimal("33.33"), category_id="c1"),
        ServiceCatalogEntry(id="s4", name="Retired peel", price=Decimal("80"), category_id="c1", is_active=False),
    ]


@pytest.fixture
def categories() -> list[Category]:
    return [Category(id="c1", name="Hair"), Category(id="c2", name="Nails")]


@pytest.fixture
def read_prices():
    return _read_prices


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def memory_store(catalog_entries, categories) -> MemoryLedgerStore:
    return MemoryLedgerStore(entries=catalog_entries, categories=categories)
