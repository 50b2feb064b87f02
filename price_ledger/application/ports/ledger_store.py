from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from dataclasses import dataclass

from price_ledger.application.ports.journal_store import JournalStorePort
from price_ledger.application.ports.service_catalog import CategoryDirectoryPort, ServiceCatalogPort


@dataclass(frozen=True)
class LedgerSession:
    catalog: ServiceCatalogPort
    categories: CategoryDirectoryPort
    journal: JournalStorePort


class LedgerStorePort(ABC):
    @abstractmethod
    def begin(self) -> AbstractContextManager[LedgerSession]:
        """
        Open a serializable transaction spanning catalog prices and the journal.
        Commits on clean exit. Any exception rolls everything back and is re-raised;
        storage failures surface as TransactionAborted.
        """
        raise NotImplementedError

    @abstractmethod
    def read(self) -> AbstractContextManager[LedgerSession]:
        """
        Open an unlocked, read-only view. Results may be stale by the time
        a caller acts on them.
        """
        raise NotImplementedError
