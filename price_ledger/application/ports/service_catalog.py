from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from price_ledger.domain.entities.service_catalog import ServiceCatalogEntry


class ServiceCatalogPort(ABC):
    @abstractmethod
    def list_entries(
        self,
        category_id: str | None = None,
        is_active: bool | None = None,
    ) -> list[ServiceCatalogEntry]:
        """List catalog entries, optionally filtered by category and active flag."""
        raise NotImplementedError

    @abstractmethod
    def get_entry(self, service_id: str) -> ServiceCatalogEntry | None:
        """Get catalog entry by id. Returns None if not found."""
        raise NotImplementedError

    @abstractmethod
    def set_price(self, service_id: str, price: Decimal) -> None:
        """Overwrite the current price. Raises CatalogEntryMissing for unknown ids."""
        raise NotImplementedError


class CategoryDirectoryPort(ABC):
    @abstractmethod
    def get_category_name(self, category_id: str) -> str | None:
        raise NotImplementedError
