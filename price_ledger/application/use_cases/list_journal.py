from __future__ import annotations

from dataclasses import dataclass

from price_ledger.application.ports.ledger_store import LedgerStorePort
from price_ledger.application.utils.revert_order import can_revert
from price_ledger.domain.entities.journal_entry import JournalEntry


@dataclass(frozen=True)
class JournalListing:
    entry: JournalEntry
    can_revert: bool


class ListJournalUseCase:
    def __init__(self, store: LedgerStorePort) -> None:
        self._store = store

    def execute(self, limit: int | None = None) -> list[JournalListing]:
        """Journal entries newest first, each flagged with whether it may be reverted now."""
        with self._store.read() as session:
            entries = session.journal.list_newest_first()
        # can_revert needs the full history even when the caller asks for a page
        listings = [JournalListing(entry=entry, can_revert=can_revert(entry, entries)) for entry in entries]
        return listings[:limit] if limit is not None else listings
