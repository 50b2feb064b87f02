from __future__ import annotations

from abc import ABC, abstractmethod

from price_ledger.domain.entities.journal_entry import JournalEntry


class JournalStorePort(ABC):
    """Append-only log of bulk price changes, ordered by (created_at, sequence)."""

    @abstractmethod
    def append(self, entry: JournalEntry) -> None:
        raise NotImplementedError

    @abstractmethod
    def get(self, entry_id: str) -> JournalEntry | None:
        raise NotImplementedError

    @abstractmethod
    def replace(self, entry: JournalEntry) -> None:
        """
        Store a new version of an existing entry.
        Only used to flip is_reverted/reverted_at; the entry keeps its position.
        """
        raise NotImplementedError

    @abstractmethod
    def list_newest_first(self, limit: int | None = None) -> list[JournalEntry]:
        raise NotImplementedError

    def last(self) -> JournalEntry | None:
        entries = self.list_newest_first(limit=1)
        return entries[0] if entries else None
