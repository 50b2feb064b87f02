"""
Tests for the SQLAlchemy ledger store, run against a temporary SQLite file.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from price_ledger.domain.exceptions import OutOfOrderRevert, TransactionAborted
from price_ledger.application.use_cases.apply_price_change import ApplyPriceChangeUseCase
from price_ledger.application.use_cases.list_journal import ListJournalUseCase
from price_ledger.application.use_cases.preview_price_change import PreviewPriceChangeUseCase
from price_ledger.application.use_cases.revert_price_change import RevertPriceChangeUseCase
from price_ledger.domain.entities.price_change import ChangeKind, ChangeSpecification
from price_ledger.infrastructure.store.sql_store import SqlJournal, SqlLedgerStore


@pytest.fixture
def sql_store(tmp_path, catalog_entries, categories):
    store = SqlLedgerStore.from_url(f"sqlite:///{tmp_path / 'ledger.db'}")
    store.seed(entries=catalog_entries, categories=categories)
    yield store
    store.engine.dispose()


def test_apply_and_revert_round_trip(sql_store, clock, read_prices):
    before = read_prices(sql_store)
    spec = ChangeSpecification(kind=ChangeKind.increase, amount=Decimal("10"), category_id="c1")

    preview = PreviewPriceChangeUseCase(sql_store).execute(spec)
    applied = ApplyPriceChangeUseCase(sql_store, clock=clock).execute(spec)

    assert preview.affected_count == applied.affected_count == 2
    assert applied.category_name == "Hair"
    assert applied.old_prices == {"s1": Decimal("100"), "s3": Decimal("33.33")}
    assert read_prices(sql_store)["s3"] == Decimal("36.663")

    counter = RevertPriceChangeUseCase(sql_store, clock=clock).execute(applied.id)

    assert read_prices(sql_store) == before
    assert counter.old_prices == {"s1": Decimal("110"), "s3": Decimal("36.663")}


def test_journal_survives_reopen_and_keeps_order(sql_store, tmp_path, clock):
    apply = ApplyPriceChangeUseCase(sql_store, clock=clock)
    first = apply.execute(ChangeSpecification(kind="increase", amount=1, is_percentage=False))
    second = apply.execute(ChangeSpecification(kind="decrease", amount=5))

    reopened = SqlLedgerStore.from_url(f"sqlite:///{tmp_path / 'ledger.db'}")
    listings = ListJournalUseCase(reopened).execute()

    assert [listing.entry.id for listing in listings] == [second.id, first.id]
    assert listings[0].entry == second
    assert [listing.can_revert for listing in listings] == [True, False]

    with pytest.raises(OutOfOrderRevert):
        RevertPriceChangeUseCase(reopened, clock=clock).execute(first.id)
    reopened.engine.dispose()


def test_database_error_rolls_back_prices(sql_store, clock, read_prices, monkeypatch):
    before = read_prices(sql_store)

    def failing_append(self, entry):
        raise OperationalError("INSERT INTO price_journal", {}, Exception("database is locked"))

    monkeypatch.setattr(SqlJournal, "append", failing_append)

    with pytest.raises(TransactionAborted):
        ApplyPriceChangeUseCase(sql_store, clock=clock).execute(
            ChangeSpecification(kind=ChangeKind.increase, amount=50)
        )

    assert read_prices(sql_store) == before
    with sql_store.read() as session:
        assert session.journal.list_newest_first() == []


def test_reseeding_keeps_applied_prices(sql_store, tmp_path, catalog_entries, categories, clock, read_prices):
    ApplyPriceChangeUseCase(sql_store, clock=clock).execute(
        ChangeSpecification(kind=ChangeKind.increase, amount=10, category_id="c2")
    )

    restarted = SqlLedgerStore.from_url(f"sqlite:///{tmp_path / 'ledger.db'}")
    restarted.seed(entries=catalog_entries, categories=categories)

    assert read_prices(restarted)["s2"] == Decimal("220")
    assert read_prices(restarted)["s1"] == Decimal("100")
    restarted.engine.dispose()
