from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Iterator

from price_ledger.domain.exceptions import TransactionAborted
from price_ledger.application.ports.ledger_store import LedgerSession, LedgerStorePort
from price_ledger.domain.entities.journal_entry import JournalEntry, RecordKind
from price_ledger.domain.entities.price_change import ChangeKind
from price_ledger.domain.entities.service_catalog import Category, ServiceCatalogEntry
from price_ledger.infrastructure.store.memory_store import LedgerState

logger = logging.getLogger(__name__)


class JsonLedgerStore(LedgerStorePort):
    """
    Single JSON document holding the catalog prices, category names and the journal.
    Every committed transaction rewrites the document through a temp file and an atomic rename.
    """

    def __init__(self, path: str = "./data/ledger.json") -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    @contextmanager
    def begin(self) -> Iterator[LedgerSession]:
        with self._lock:
            state = self._load()
            yield state.session()
            self._save(state)

    @contextmanager
    def read(self) -> Iterator[LedgerSession]:
        yield self._load().session()

    def seed(self, entries: Iterable[ServiceCatalogEntry] = (), categories: Iterable[Category] = ()) -> None:
        """
        Add catalog entries that are not stored yet and refresh category names.
        Stored services keep their current price, and the journal is never touched.
        """
        with self._lock:
            state = self._load()
            for entry in entries:
                state.services.setdefault(entry.id, entry)
            for category in categories:
                state.categories[category.id] = category.name
            self._save(state)

    def delete_entry(self, service_id: str) -> None:
        with self._lock:
            state = self._load()
            state.services.pop(service_id, None)
            self._save(state)

    def _load(self) -> LedgerState:
        """Load ledger state from disk, empty if the file does not exist yet."""
        if not self._path.exists():
            return LedgerState()
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return _deserialize_state(data)
        except (OSError, ValueError, KeyError, TypeError, ArithmeticError) as e:
            # A corrupt ledger is never replaced with defaults; history must not be lost silently
            logger.error("Failed to load ledger file", extra={"error": str(e)})
            raise TransactionAborted(f"Could not read ledger file {self._path}: {e}") from e

    def _save(self, state: LedgerState) -> None:
        """Save ledger state to disk atomically."""
        temp_path = self._path.with_suffix(".json.tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(_serialize_state(state), f, indent=2, ensure_ascii=False)
            temp_path.replace(self._path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)
            logger.error("Failed to write ledger file", extra={"error": str(e)})
            raise TransactionAborted(f"Could not write ledger file {self._path}: {e}") from e


def _decimal_text(value: Decimal) -> str:
    return format(value, "f")


def _serialize_state(state: LedgerState) -> dict[str, Any]:
    return {
        "version": 1,
        "services": [_serialize_service(entry) for entry in state.services.values()],
        "categories": dict(state.categories),
        "journal": [_serialize_entry(entry) for entry in state.journal],
    }


def _deserialize_state(data: dict[str, Any]) -> LedgerState:
    services = [_deserialize_service(item) for item in data.get("services", [])]
    return LedgerState(
        services={entry.id: entry for entry in services},
        categories=dict(data.get("categories", {})),
        journal=[_deserialize_entry(item) for item in data.get("journal", [])],
    )


def _serialize_service(entry: ServiceCatalogEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "name": entry.name,
        "price": _decimal_text(entry.price),
        "category_id": entry.category_id,
        "is_active": entry.is_active,
    }


def _deserialize_service(data: dict[str, Any]) -> ServiceCatalogEntry:
    return ServiceCatalogEntry(
        id=data["id"],
        name=data.get("name"),
        price=Decimal(data["price"]),
        category_id=data.get("category_id"),
        is_active=data.get("is_active", True),
    )


def _serialize_entry(entry: JournalEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "record_kind": entry.record_kind.value,
        "kind": entry.kind.value,
        "amount": _decimal_text(entry.amount),
        "is_percentage": entry.is_percentage,
        "category_id": entry.category_id,
        "category_name": entry.category_name,
        "affected_count": entry.affected_count,
        "created_at": entry.created_at.isoformat(),
        "sequence": entry.sequence,
        "old_prices": {service_id: _decimal_text(price) for service_id, price in entry.old_prices.items()},
        "is_reverted": entry.is_reverted,
        "reverted_at": entry.reverted_at.isoformat() if entry.reverted_at else None,
        "performed_by": entry.performed_by,
        "reverts_entry_id": entry.reverts_entry_id,
    }


def _deserialize_entry(data: dict[str, Any]) -> JournalEntry:
    reverted_at = data.get("reverted_at")
    return JournalEntry(
        id=data["id"],
        record_kind=RecordKind(data["record_kind"]),
        kind=ChangeKind(data["kind"]),
        amount=Decimal(data["amount"]),
        is_percentage=data["is_percentage"],
        category_id=data.get("category_id"),
        category_name=data.get("category_name"),
        affected_count=data["affected_count"],
        created_at=datetime.fromisoformat(data["created_at"]),
        sequence=data["sequence"],
        old_prices={service_id: Decimal(price) for service_id, price in data.get("old_prices", {}).items()},
        is_reverted=data.get("is_reverted", False),
        reverted_at=datetime.fromisoformat(reverted_at) if reverted_at else None,
        performed_by=data.get("performed_by"),
        reverts_entry_id=data.get("reverts_entry_id"),
    )
