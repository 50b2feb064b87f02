"""
Tests for applying and reverting bulk price changes against the in-memory store.
"""

from __future__ import annotations

import threading
from decimal import Decimal

import pytest

from price_ledger.domain.exceptions import (
    AlreadyReverted,
    CatalogEntryMissing,
    NoMatchingServices,
    NotFound,
    OutOfOrderRevert,
    RevertOfRevertNotAllowed,
    TransactionAborted,
)
from price_ledger.application.use_cases.apply_price_change import ApplyPriceChangeUseCase
from price_ledger.application.use_cases.list_journal import ListJournalUseCase
from price_ledger.application.use_cases.revert_price_change import RevertPriceChangeUseCase
from price_ledger.domain.entities.journal_entry import RecordKind
from price_ledger.domain.entities.price_change import ChangeKind, ChangeSpecification
from price_ledger.domain.entities.service_catalog import ServiceCatalogEntry
from price_ledger.infrastructure.store.memory_store import InMemoryCatalog, InMemoryJournal, MemoryLedgerStore


def _increase(amount, category_id=None, is_percentage=True):
    return ChangeSpecification(
        kind=ChangeKind.increase, amount=amount, is_percentage=is_percentage, category_id=category_id
    )


def _journal(store):
    with store.read() as session:
        return session.journal.list_newest_first()


def test_category_scoped_apply_and_revert(clock):
    store = MemoryLedgerStore(
        entries=[
            ServiceCatalogEntry(id="s1", price=Decimal("100"), category_id="c1"),
            ServiceCatalogEntry(id="s2", price=Decimal("200"), category_id="c2"),
        ]
    )
    applied = ApplyPriceChangeUseCase(store, clock=clock).execute(_increase(10, category_id="c1"))

    with store.read() as session:
        assert session.catalog.get_entry("s1").price == Decimal("110")
        assert session.catalog.get_entry("s2").price == Decimal("200")
    assert applied.old_prices == {"s1": Decimal("100")}
    assert applied.affected_count == 1
    assert applied.record_kind is RecordKind.applied
    assert applied.is_reverted is False and applied.reverted_at is None

    clock.advance(60)
    counter = RevertPriceChangeUseCase(store, clock=clock).execute(applied.id)

    with store.read() as session:
        assert session.catalog.get_entry("s1").price == Decimal("100")
        reverted = session.journal.get(applied.id)
    assert counter.record_kind is RecordKind.revert
    assert counter.old_prices == {"s1": Decimal("110")}
    assert counter.reverts_entry_id == applied.id
    assert reverted.is_reverted is True
    assert reverted.reverted_at == clock.now()


def test_apply_snapshots_category_name(memory_store, clock):
    entry = ApplyPriceChangeUseCase(memory_store, clock=clock).execute(_increase(5, category_id="c2"))

    assert entry.category_name == "Nails"
    assert entry.describe() == "5% increase - Nails"


def test_returned_snapshot_is_read_only(memory_store, clock, read_prices):
    applied = ApplyPriceChangeUseCase(memory_store, clock=clock).execute(_increase(10, category_id="c2"))

    with pytest.raises(TypeError):
        applied.old_prices["s2"] = Decimal("999")
    with pytest.raises(TypeError):
        del applied.old_prices["s2"]

    with memory_store.read() as session:
        assert session.journal.get(applied.id).old_prices == {"s2": Decimal("200")}
    RevertPriceChangeUseCase(memory_store, clock=clock).execute(applied.id)
    assert read_prices(memory_store)["s2"] == Decimal("200")


def test_apply_with_no_matches_writes_nothing(memory_store, clock, read_prices):
    before = read_prices(memory_store)

    with pytest.raises(NoMatchingServices):
        ApplyPriceChangeUseCase(memory_store, clock=clock).execute(_increase(10, category_id="nope"))

    assert read_prices(memory_store) == before
    assert _journal(memory_store) == []


def test_round_trip_restores_exact_prices(memory_store, clock, read_prices):
    before = read_prices(memory_store)
    apply = ApplyPriceChangeUseCase(memory_store, clock=clock)
    revert = RevertPriceChangeUseCase(memory_store, clock=clock)

    first = apply.execute(_increase(Decimal("7")))
    second = apply.execute(
        ChangeSpecification(kind=ChangeKind.decrease, amount=Decimal("3.10"), is_percentage=False)
    )
    revert.execute(second.id)
    revert.execute(first.id)

    assert read_prices(memory_store) == before


def test_reverts_follow_stack_order(memory_store, clock, read_prices):
    """Entries created in the same instant are still totally ordered by sequence."""
    before = read_prices(memory_store)
    apply = ApplyPriceChangeUseCase(memory_store, clock=clock)
    revert = RevertPriceChangeUseCase(memory_store, clock=clock)

    e3 = apply.execute(_increase(1))
    e2 = apply.execute(_increase(2))
    e1 = apply.execute(_increase(3))
    assert e1.created_at == e2.created_at == e3.created_at
    assert (e3.sequence, e2.sequence, e1.sequence) == (1, 2, 3)

    with pytest.raises(OutOfOrderRevert) as exc_info:
        revert.execute(e3.id)
    assert exc_info.value.blocking_entry_ids == [e1.id, e2.id]
    assert e1.id in str(exc_info.value) and e2.id in str(exc_info.value)

    revert.execute(e1.id)

    with pytest.raises(OutOfOrderRevert) as exc_info:
        revert.execute(e3.id)
    assert exc_info.value.blocking_entry_ids == [e2.id]

    revert.execute(e2.id)
    revert.execute(e3.id)
    assert read_prices(memory_store) == before


def test_revert_entries_are_terminal(memory_store, clock):
    apply = ApplyPriceChangeUseCase(memory_store, clock=clock)
    revert = RevertPriceChangeUseCase(memory_store, clock=clock)

    older = apply.execute(_increase(1))
    counter = revert.execute(apply.execute(_increase(2)).id)

    with pytest.raises(RevertOfRevertNotAllowed):
        revert.execute(counter.id)

    # still refused while an older entry is revertible and after everything is undone
    revert.execute(older.id)
    with pytest.raises(RevertOfRevertNotAllowed):
        revert.execute(counter.id)


def test_double_revert_and_unknown_id(memory_store, clock):
    entry = ApplyPriceChangeUseCase(memory_store, clock=clock).execute(_increase(10))
    revert = RevertPriceChangeUseCase(memory_store, clock=clock)
    revert.execute(entry.id)

    with pytest.raises(AlreadyReverted):
        revert.execute(entry.id)
    with pytest.raises(NotFound):
        revert.execute("does-not-exist")


def test_revert_overwrites_out_of_band_price_changes(memory_store, clock):
    entry = ApplyPriceChangeUseCase(memory_store, clock=clock).execute(_increase(10, category_id="c2"))
    memory_store.upsert_entry(ServiceCatalogEntry(id="s2", price=Decimal("999"), category_id="c2"))

    counter = RevertPriceChangeUseCase(memory_store, clock=clock).execute(entry.id)

    with memory_store.read() as session:
        assert session.catalog.get_entry("s2").price == Decimal("200")
    assert counter.old_prices == {"s2": Decimal("999")}


def test_revert_fails_whole_when_snapshot_entry_was_deleted(memory_store, clock, read_prices):
    entry = ApplyPriceChangeUseCase(memory_store, clock=clock).execute(_increase(10, category_id="c1"))
    memory_store.delete_entry("s3")
    before = read_prices(memory_store)

    with pytest.raises(CatalogEntryMissing) as exc_info:
        RevertPriceChangeUseCase(memory_store, clock=clock).execute(entry.id)

    assert exc_info.value.service_id == "s3"
    assert read_prices(memory_store) == before
    journal = _journal(memory_store)
    assert len(journal) == 1
    assert journal[0].is_reverted is False


def test_store_failure_mid_apply_leaves_no_trace(memory_store, clock, read_prices, monkeypatch):
    before = read_prices(memory_store)
    original = InMemoryCatalog.set_price
    calls = {"count": 0}

    def flaky_set_price(self, service_id, price):
        calls["count"] += 1
        if calls["count"] == 2:
            raise TransactionAborted("simulated store failure")
        original(self, service_id, price)

    monkeypatch.setattr(InMemoryCatalog, "set_price", flaky_set_price)

    with pytest.raises(TransactionAborted):
        ApplyPriceChangeUseCase(memory_store, clock=clock).execute(_increase(10))

    assert calls["count"] == 2
    assert read_prices(memory_store) == before
    assert _journal(memory_store) == []


def test_store_failure_mid_revert_leaves_no_trace(memory_store, clock, read_prices, monkeypatch):
    entry = ApplyPriceChangeUseCase(memory_store, clock=clock).execute(_increase(10))
    after_apply = read_prices(memory_store)

    def failing_append(self, journal_entry):
        raise TransactionAborted("simulated store failure")

    monkeypatch.setattr(InMemoryJournal, "append", failing_append)

    with pytest.raises(TransactionAborted):
        RevertPriceChangeUseCase(memory_store, clock=clock).execute(entry.id)

    assert read_prices(memory_store) == after_apply
    journal = _journal(memory_store)
    assert [item.id for item in journal] == [entry.id]
    assert journal[0].is_reverted is False


def test_clock_going_backwards_keeps_order(memory_store, clock):
    apply = ApplyPriceChangeUseCase(memory_store, clock=clock)
    first = apply.execute(_increase(1))
    clock.advance(-3600)
    second = apply.execute(_increase(1))

    assert second.created_at == first.created_at
    assert second.order_key > first.order_key


def test_list_journal_newest_first_with_revert_flags(memory_store, clock):
    apply = ApplyPriceChangeUseCase(memory_store, clock=clock)
    older = apply.execute(_increase(1))
    clock.advance(1)
    newer = apply.execute(_increase(2))
    clock.advance(1)
    counter = RevertPriceChangeUseCase(memory_store, clock=clock).execute(newer.id)

    listings = ListJournalUseCase(memory_store).execute()

    assert [listing.entry.id for listing in listings] == [counter.id, newer.id, older.id]
    assert [listing.can_revert for listing in listings] == [False, False, True]
    assert [listing.entry.id for listing in ListJournalUseCase(memory_store).execute(limit=1)] == [counter.id]


def test_concurrent_applies_do_not_lose_updates(memory_store):
    apply = ApplyPriceChangeUseCase(memory_store)
    spec = _increase(Decimal("1"), category_id="c2", is_percentage=False)
    threads = [threading.Thread(target=apply.execute, args=(spec,)) for _ in range(10)]

    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    with memory_store.read() as session:
        assert session.catalog.get_entry("s2").price == Decimal("210")
        journal = session.journal.list_newest_first()
    assert sorted(entry.sequence for entry in journal) == list(range(1, 11))
