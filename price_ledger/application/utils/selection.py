from __future__ import annotations

from price_ledger.application.ports.service_catalog import ServiceCatalogPort
from price_ledger.domain.entities.price_change import ChangeSpecification
from price_ledger.domain.entities.service_catalog import ServiceCatalogEntry


def is_selected(entry: ServiceCatalogEntry, spec: ChangeSpecification) -> bool:
    return entry.is_active and (spec.category_id is None or entry.category_id == spec.category_id)


def select_entries(catalog: ServiceCatalogPort, spec: ChangeSpecification) -> list[ServiceCatalogEntry]:
    """
    Resolve the entries a change applies to.

    Preview and apply both go through here so a preview always describes
    what apply will touch. The store-side filter only narrows the scan;
    is_selected is the rule.
    """
    candidates = catalog.list_entries(category_id=spec.category_id, is_active=True)
    selected = [entry for entry in candidates if is_selected(entry, spec)]
    selected.sort(key=lambda entry: entry.id)
    return selected
