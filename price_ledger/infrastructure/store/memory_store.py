from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Iterable, Iterator

from price_ledger.domain.exceptions import CatalogEntryMissing
from price_ledger.application.ports.journal_store import JournalStorePort
from price_ledger.application.ports.ledger_store import LedgerSession, LedgerStorePort
from price_ledger.application.ports.service_catalog import CategoryDirectoryPort, ServiceCatalogPort
from price_ledger.domain.entities.journal_entry import JournalEntry
from price_ledger.domain.entities.service_catalog import Category, ServiceCatalogEntry


class InMemoryCatalog(ServiceCatalogPort):
    def __init__(self, entries: dict[str, ServiceCatalogEntry]) -> None:
        self._entries = entries

    def list_entries(
        self,
        category_id: str | None = None,
        is_active: bool | None = None,
    ) -> list[ServiceCatalogEntry]:
        return [
            entry
            for entry in self._entries.values()
            if (category_id is None or entry.category_id == category_id)
            and (is_active is None or entry.is_active == is_active)
        ]

    def get_entry(self, service_id: str) -> ServiceCatalogEntry | None:
        return self._entries.get(service_id)

    def set_price(self, service_id: str, price: Decimal) -> None:
        entry = self._entries.get(service_id)
        if entry is None:
            raise CatalogEntryMissing(service_id)
        self._entries[service_id] = replace(entry, price=price)


class InMemoryCategories(CategoryDirectoryPort):
    def __init__(self, names: dict[str, str]) -> None:
        self._names = names

    def get_category_name(self, category_id: str) -> str | None:
        return self._names.get(category_id)


class InMemoryJournal(JournalStorePort):
    def __init__(self, entries: list[JournalEntry]) -> None:
        self._entries = entries

    def append(self, entry: JournalEntry) -> None:
        if any(existing.id == entry.id for existing in self._entries):
            raise ValueError(f"Journal entry {entry.id} already exists")
        self._entries.append(entry)

    def get(self, entry_id: str) -> JournalEntry | None:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def replace(self, entry: JournalEntry) -> None:
        for index, existing in enumerate(self._entries):
            if existing.id == entry.id:
                self._entries[index] = entry
                return
        raise KeyError(entry.id)

    def list_newest_first(self, limit: int | None = None) -> list[JournalEntry]:
        entries = sorted(self._entries, key=lambda entry: entry.order_key, reverse=True)
        return entries[:limit] if limit is not None else entries


@dataclass
class LedgerState:
    """Plain container for catalog prices, category names and the journal."""

    services: dict[str, ServiceCatalogEntry] = field(default_factory=dict)
    categories: dict[str, str] = field(default_factory=dict)
    journal: list[JournalEntry] = field(default_factory=list)

    def copy(self) -> LedgerState:
        return LedgerState(
            services=dict(self.services),
            categories=dict(self.categories),
            journal=list(self.journal),
        )

    def session(self) -> LedgerSession:
        return LedgerSession(
            catalog=InMemoryCatalog(self.services),
            categories=InMemoryCategories(self.categories),
            journal=InMemoryJournal(self.journal),
        )


class MemoryLedgerStore(LedgerStorePort):
    """
    Process-local store. Each transaction works on a copy of the committed
    state and swaps it in on success, so a failed transaction leaves nothing behind.
    """

    def __init__(
        self,
        entries: Iterable[ServiceCatalogEntry] = (),
        categories: Iterable[Category] = (),
    ) -> None:
        self._state = LedgerState(
            services={entry.id: entry for entry in entries},
            categories={category.id: category.name for category in categories},
        )
        self._lock = threading.Lock()

    @contextmanager
    def begin(self) -> Iterator[LedgerSession]:
        with self._lock:
            working = self._state.copy()
            yield working.session()
            self._state = working

    @contextmanager
    def read(self) -> Iterator[LedgerSession]:
        yield self._state.copy().session()

    def upsert_entry(self, entry: ServiceCatalogEntry) -> None:
        with self._lock:
            working = self._state.copy()
            working.services[entry.id] = entry
            self._state = working

    def delete_entry(self, service_id: str) -> None:
        with self._lock:
            working = self._state.copy()
            working.services.pop(service_id, None)
            self._state = working
