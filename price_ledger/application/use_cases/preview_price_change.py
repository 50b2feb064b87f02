from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, localcontext

from price_ledger.application.ports.ledger_store import LedgerStorePort
from price_ledger.application.utils.price_delta import apply_price_delta
from price_ledger.application.utils.selection import select_entries
from price_ledger.domain.entities.preview import PreviewItem, PreviewResult, PriceRange
from price_ledger.domain.entities.price_change import ChangeSpecification

_CENT = Decimal("0.01")


class PreviewPriceChangeUseCase:
    """Simulate a bulk price change without touching the catalog."""

    def __init__(self, store: LedgerStorePort) -> None:
        self._store = store
        self._logger = logging.getLogger(__name__)

    def execute(self, spec: ChangeSpecification) -> PreviewResult:
        with self._store.read() as session:
            entries = select_entries(session.catalog, spec)

        items = [
            _preview_item(entry.id, entry.name, entry.price, apply_price_delta(entry.price, spec))
            for entry in entries
        ]
        self._logger.debug(
            "Price change previewed",
            extra={"category_id": spec.category_id, "affected_count": len(items)},
        )
        if not items:
            return PreviewResult(
                affected_count=0,
                current_price_range=PriceRange(),
                new_price_range=PriceRange(),
            )

        old_prices = [item.old_price for item in items]
        new_prices = [item.new_price for item in items]
        return PreviewResult(
            affected_count=len(items),
            current_price_range=PriceRange(min=min(old_prices), max=max(old_prices)),
            new_price_range=PriceRange(min=min(new_prices), max=max(new_prices)),
            items=items,
        )


def _preview_item(service_id: str, name: str | None, old_price: Decimal, new_price: Decimal) -> PreviewItem:
    difference = new_price - old_price
    if old_price > 0:
        ratio = difference / old_price * 100
        with localcontext() as ctx:
            # Room for every integer digit plus the two cent places
            ctx.prec = max(ctx.prec, ratio.adjusted() + 4)
            percent = ratio.quantize(_CENT, rounding=ROUND_HALF_UP)
    else:
        percent = Decimal("0")
    return PreviewItem(
        service_id=service_id,
        name=name,
        old_price=old_price,
        new_price=new_price,
        difference=difference,
        percent_difference=percent,
    )
