from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable

from price_ledger.domain.exceptions import (
    AlreadyReverted,
    CatalogEntryMissing,
    NotFound,
    OutOfOrderRevert,
    RevertOfRevertNotAllowed,
)
from price_ledger.application.ports.ledger_store import LedgerStorePort
from price_ledger.application.use_cases.apply_price_change import new_entry_id
from price_ledger.application.utils.clock import Clock, SystemClock, next_position
from price_ledger.application.utils.revert_order import blocking_entries
from price_ledger.domain.entities.journal_entry import JournalEntry, RecordKind


class RevertPriceChangeUseCase:
    """
    Undo a journaled bulk change by restoring its price snapshot.

    Reverts follow stack order: an entry can be reverted only once every
    newer applied entry has been reverted. A revert writes its own journal
    entry, which can never be reverted itself.
    """

    def __init__(
        self,
        store: LedgerStorePort,
        clock: Clock | None = None,
        id_factory: Callable[[], str] = new_entry_id,
    ) -> None:
        self._store = store
        self._clock = clock or SystemClock()
        self._id_factory = id_factory
        self._logger = logging.getLogger(__name__)

    def execute(self, entry_id: str, performed_by: str | None = None) -> JournalEntry:
        with self._store.begin() as session:
            entry = session.journal.get(entry_id)
            if entry is None:
                raise NotFound(f"Journal entry {entry_id} not found")
            if entry.record_kind is RecordKind.revert:
                raise RevertOfRevertNotAllowed(f"Journal entry {entry_id} is a revert and cannot be reverted")
            if entry.is_reverted:
                raise AlreadyReverted(f"Journal entry {entry_id} was already reverted at {entry.reverted_at}")

            blockers = blocking_entries(entry, session.journal.list_newest_first())
            if blockers:
                self._logger.info(
                    "Revert refused, newer entries still applied",
                    extra={"journal_entry_id": entry_id, "blocking": ",".join(b.id for b in blockers)},
                )
                raise OutOfOrderRevert(entry_id, [b.id for b in blockers])

            overwritten: dict[str, Decimal] = {}
            for service_id in entry.old_prices:
                current = session.catalog.get_entry(service_id)
                if current is None:
                    raise CatalogEntryMissing(service_id)
                overwritten[service_id] = current.price

            for service_id, old_price in entry.old_prices.items():
                session.catalog.set_price(service_id, old_price)

            created_at, sequence = next_position(self._clock, session.journal.last())
            session.journal.replace(entry.marked_reverted(created_at))
            counter_entry = JournalEntry(
                id=self._id_factory(),
                record_kind=RecordKind.revert,
                kind=entry.kind,
                amount=entry.amount,
                is_percentage=entry.is_percentage,
                category_id=entry.category_id,
                category_name=entry.category_name,
                affected_count=len(entry.old_prices),
                created_at=created_at,
                sequence=sequence,
                old_prices=overwritten,
                performed_by=performed_by,
                reverts_entry_id=entry.id,
            )
            session.journal.append(counter_entry)

        self._logger.info(
            "Bulk price change reverted",
            extra={
                "journal_entry_id": entry.id,
                "record_kind": counter_entry.record_kind.value,
                "affected_count": counter_entry.affected_count,
                "category_id": counter_entry.category_id,
            },
        )
        return counter_entry
