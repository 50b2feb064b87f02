import logging

from price_ledger.application.ports.ledger_store import LedgerStorePort
from price_ledger.application.use_cases.apply_price_change import ApplyPriceChangeUseCase
from price_ledger.application.use_cases.list_journal import ListJournalUseCase
from price_ledger.application.use_cases.preview_price_change import PreviewPriceChangeUseCase
from price_ledger.application.use_cases.revert_price_change import RevertPriceChangeUseCase
from price_ledger.core.config import settings
from price_ledger.infrastructure.store.json_store import JsonLedgerStore
from price_ledger.infrastructure.store.memory_store import MemoryLedgerStore
from price_ledger.infrastructure.store.seed import load_catalog_seed
from price_ledger.infrastructure.store.sql_store import SqlLedgerStore


_ledger_store: LedgerStorePort | None = None


def build_ledger_store() -> LedgerStorePort:
    logger = logging.getLogger(__name__)
    provider = settings.STORE_PROVIDER.lower()

    entries, categories = [], []
    if settings.CATALOG_SEED_PATH:
        entries, categories = load_catalog_seed(settings.CATALOG_SEED_PATH)
        logger.info("Loaded catalog seed", extra={"affected_count": len(entries)})

    if provider == "memory":
        return MemoryLedgerStore(entries=entries, categories=categories)
    if provider == "json":
        store = JsonLedgerStore(settings.JSON_STORE_PATH)
    elif provider == "sql":
        store = SqlLedgerStore.from_url(settings.DATABASE_URL)
    else:
        raise ValueError(f"Unknown STORE_PROVIDER: {settings.STORE_PROVIDER}")

    if entries or categories:
        store.seed(entries=entries, categories=categories)
    logger.info("Using %s ledger store", provider)
    return store


def get_ledger_store() -> LedgerStorePort:
    global _ledger_store
    if _ledger_store is None:
        _ledger_store = build_ledger_store()
    return _ledger_store


def get_preview_use_case() -> PreviewPriceChangeUseCase:
    return PreviewPriceChangeUseCase(store=get_ledger_store())


def get_apply_use_case() -> ApplyPriceChangeUseCase:
    return ApplyPriceChangeUseCase(store=get_ledger_store())


def get_revert_use_case() -> RevertPriceChangeUseCase:
    return RevertPriceChangeUseCase(store=get_ledger_store())


def get_list_journal_use_case() -> ListJournalUseCase:
    return ListJournalUseCase(store=get_ledger_store())
