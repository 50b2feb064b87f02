from __future__ import annotations

import logging
import uuid
from typing import Callable

from price_ledger.domain.exceptions import NoMatchingServices
from price_ledger.application.ports.ledger_store import LedgerStorePort
from price_ledger.application.utils.clock import Clock, SystemClock, next_position
from price_ledger.application.utils.price_delta import apply_price_delta
from price_ledger.application.utils.selection import select_entries
from price_ledger.domain.entities.journal_entry import JournalEntry, RecordKind
from price_ledger.domain.entities.price_change import ChangeSpecification


def new_entry_id() -> str:
    return uuid.uuid4().hex


class ApplyPriceChangeUseCase:
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

    def execute(self, spec: ChangeSpecification, performed_by: str | None = None) -> JournalEntry:
        """
        Apply spec to every matching catalog entry and journal the change.
        Selection is re-resolved here; a previous preview is never trusted.
        """
        with self._store.begin() as session:
            entries = select_entries(session.catalog, spec)
            if not entries:
                raise NoMatchingServices(
                    "No active services match"
                    + (f" category {spec.category_id}" if spec.category_id else "")
                )

            old_prices = {entry.id: entry.price for entry in entries}
            category_name = (
                session.categories.get_category_name(spec.category_id) if spec.category_id else None
            )

            for entry in entries:
                session.catalog.set_price(entry.id, apply_price_delta(entry.price, spec))

            created_at, sequence = next_position(self._clock, session.journal.last())
            journal_entry = JournalEntry(
                id=self._id_factory(),
                record_kind=RecordKind.applied,
                kind=spec.kind,
                amount=spec.amount,
                is_percentage=spec.is_percentage,
                category_id=spec.category_id,
                category_name=category_name,
                affected_count=len(old_prices),
                created_at=created_at,
                sequence=sequence,
                old_prices=old_prices,
                performed_by=performed_by,
            )
            session.journal.append(journal_entry)

        self._logger.info(
            "Bulk price change applied",
            extra={
                "journal_entry_id": journal_entry.id,
                "record_kind": journal_entry.record_kind.value,
                "affected_count": journal_entry.affected_count,
                "category_id": journal_entry.category_id,
            },
        )
        return journal_entry
