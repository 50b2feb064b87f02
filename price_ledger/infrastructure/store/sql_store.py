from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Iterator

from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from price_ledger.domain.exceptions import CatalogEntryMissing, TransactionAborted
from price_ledger.application.ports.journal_store import JournalStorePort
from price_ledger.application.ports.ledger_store import LedgerSession, LedgerStorePort
from price_ledger.application.ports.service_catalog import CategoryDirectoryPort, ServiceCatalogPort
from price_ledger.domain.entities.journal_entry import JournalEntry, RecordKind
from price_ledger.domain.entities.price_change import ChangeKind
from price_ledger.domain.entities.service_catalog import Category, ServiceCatalogEntry
from price_ledger.infrastructure.store.models import Base, CategoryModel, PriceJournalModel, ServiceModel

logger = logging.getLogger(__name__)


class SqlServiceCatalog(ServiceCatalogPort):
    def __init__(self, session: Session, for_update: bool = False) -> None:
        self.session = session
        self.for_update = for_update

    def list_entries(
        self,
        category_id: str | None = None,
        is_active: bool | None = None,
    ) -> list[ServiceCatalogEntry]:
        query = select(ServiceModel).order_by(ServiceModel.id)
        if category_id is not None:
            query = query.where(ServiceModel.category_id == category_id)
        if is_active is not None:
            query = query.where(ServiceModel.is_active == is_active)
        if self.for_update:
            query = query.with_for_update()
        return [_service_to_domain(model) for model in self.session.scalars(query)]

    def get_entry(self, service_id: str) -> ServiceCatalogEntry | None:
        model = self.session.get(ServiceModel, service_id, with_for_update=self.for_update)
        return _service_to_domain(model) if model else None

    def set_price(self, service_id: str, price: Decimal) -> None:
        model = self.session.get(ServiceModel, service_id)
        if model is None:
            raise CatalogEntryMissing(service_id)
        model.price = format(price, "f")
        self.session.flush()


class SqlCategoryDirectory(CategoryDirectoryPort):
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_category_name(self, category_id: str) -> str | None:
        model = self.session.get(CategoryModel, category_id)
        return model.name if model else None


class SqlJournal(JournalStorePort):
    def __init__(self, session: Session) -> None:
        self.session = session

    def append(self, entry: JournalEntry) -> None:
        self.session.add(_entry_to_model(entry))
        self.session.flush()

    def get(self, entry_id: str) -> JournalEntry | None:
        model = self.session.get(PriceJournalModel, entry_id)
        return _entry_to_domain(model) if model else None

    def replace(self, entry: JournalEntry) -> None:
        model = self.session.get(PriceJournalModel, entry.id)
        if model is None:
            raise KeyError(entry.id)
        model.is_reverted = entry.is_reverted
        model.reverted_at = entry.reverted_at.isoformat() if entry.reverted_at else None
        self.session.flush()

    def list_newest_first(self, limit: int | None = None) -> list[JournalEntry]:
        query = select(PriceJournalModel).order_by(PriceJournalModel.sequence.desc())
        if limit is not None:
            query = query.limit(limit)
        return [_entry_to_domain(model) for model in self.session.scalars(query)]


class SqlLedgerStore(LedgerStorePort):
    """
    SQLAlchemy-backed ledger. Mutating transactions are serialized by a process
    lock and take row locks where the dialect supports SELECT ... FOR UPDATE.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        self._lock = threading.Lock()
        self.ensure_schema()

    @classmethod
    def from_url(cls, url: str) -> "SqlLedgerStore":
        engine = create_engine(url, pool_pre_ping=True, future=True)
        return cls(engine)

    def ensure_schema(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def begin(self) -> Iterator[LedgerSession]:
        with self._lock:
            session = self._session_factory()
            try:
                with session.begin():
                    yield LedgerSession(
                        catalog=SqlServiceCatalog(session, for_update=True),
                        categories=SqlCategoryDirectory(session),
                        journal=SqlJournal(session),
                    )
            except SQLAlchemyError as e:
                logger.error("Ledger transaction failed", extra={"error": str(e)})
                raise TransactionAborted(f"Store failure, nothing was written: {e}") from e
            finally:
                session.close()

    @contextmanager
    def read(self) -> Iterator[LedgerSession]:
        session = self._session_factory()
        try:
            yield LedgerSession(
                catalog=SqlServiceCatalog(session),
                categories=SqlCategoryDirectory(session),
                journal=SqlJournal(session),
            )
        except SQLAlchemyError as e:
            raise TransactionAborted(f"Store read failed: {e}") from e
        finally:
            session.close()

    def seed(self, entries: Iterable[ServiceCatalogEntry] = (), categories: Iterable[Category] = ()) -> None:
        """Insert missing services and upsert category names. Existing service rows keep their price."""
        with self._session_factory.begin() as session:
            for entry in entries:
                if session.get(ServiceModel, entry.id) is not None:
                    continue
                session.add(
                    ServiceModel(
                        id=entry.id,
                        name=entry.name,
                        price=format(entry.price, "f"),
                        category_id=entry.category_id,
                        is_active=entry.is_active,
                    )
                )
                session.flush()
            for category in categories:
                session.merge(CategoryModel(id=category.id, name=category.name))

    def delete_entry(self, service_id: str) -> None:
        with self._session_factory.begin() as session:
            model = session.get(ServiceModel, service_id)
            if model is not None:
                session.delete(model)


def _service_to_domain(model: ServiceModel) -> ServiceCatalogEntry:
    return ServiceCatalogEntry(
        id=model.id,
        name=model.name,
        price=Decimal(model.price),
        category_id=model.category_id,
        is_active=bool(model.is_active),
    )


def _entry_to_model(entry: JournalEntry) -> PriceJournalModel:
    return PriceJournalModel(
        id=entry.id,
        sequence=entry.sequence,
        record_kind=entry.record_kind.value,
        kind=entry.kind.value,
        amount=format(entry.amount, "f"),
        is_percentage=entry.is_percentage,
        category_id=entry.category_id,
        category_name=entry.category_name,
        affected_count=entry.affected_count,
        created_at=entry.created_at.isoformat(),
        old_prices=json.dumps({service_id: format(price, "f") for service_id, price in entry.old_prices.items()}),
        is_reverted=entry.is_reverted,
        reverted_at=entry.reverted_at.isoformat() if entry.reverted_at else None,
        performed_by=entry.performed_by,
        reverts_entry_id=entry.reverts_entry_id,
    )


def _entry_to_domain(model: PriceJournalModel) -> JournalEntry:
    return JournalEntry(
        id=model.id,
        record_kind=RecordKind(model.record_kind),
        kind=ChangeKind(model.kind),
        amount=Decimal(model.amount),
        is_percentage=bool(model.is_percentage),
        category_id=model.category_id,
        category_name=model.category_name,
        affected_count=model.affected_count,
        created_at=datetime.fromisoformat(model.created_at),
        sequence=model.sequence,
        old_prices={service_id: Decimal(price) for service_id, price in json.loads(model.old_prices or "{}").items()},
        is_reverted=bool(model.is_reverted),
        reverted_at=datetime.fromisoformat(model.reverted_at) if model.reverted_at else None,
        performed_by=model.performed_by,
        reverts_entry_id=model.reverts_entry_id,
    )
