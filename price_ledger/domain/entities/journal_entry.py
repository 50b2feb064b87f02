from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from price_ledger.domain.entities.price_change import ChangeKind


class RecordKind(str, Enum):
    applied = "applied"
    revert = "revert"


@dataclass(frozen=True)
class JournalEntry:
    id: str
    record_kind: RecordKind
    kind: ChangeKind
    amount: Decimal
    is_percentage: bool
    category_id: str | None
    category_name: str | None  # frozen at apply time, never re-resolved
    affected_count: int
    created_at: datetime
    sequence: int
    old_prices: Mapping[str, Decimal] = field(default_factory=dict)
    is_reverted: bool = False
    reverted_at: datetime | None = None
    performed_by: str | None = None
    reverts_entry_id: str | None = None

    def __post_init__(self) -> None:
        # Snapshot is read-only; a revert restores exactly what was recorded
        object.__setattr__(self, "old_prices", MappingProxyType(dict(self.old_prices)))

    @property
    def order_key(self) -> tuple[datetime, int]:
        return (self.created_at, self.sequence)

    @property
    def is_revert(self) -> bool:
        return self.record_kind is RecordKind.revert

    def marked_reverted(self, at: datetime) -> JournalEntry:
        return replace(self, is_reverted=True, reverted_at=at)

    def describe(self) -> str:
        """Human readable label, e.g. "10% increase - Hair" or "25.00 decrease"."""
        if self.is_percentage:
            amount = f"{_plain(self.amount)}%"
        else:
            amount = f"{self.amount:.2f}"
        label = f"{amount} {self.kind.value}"
        if self.category_name:
            label = f"{label} - {self.category_name}"
        if self.is_revert:
            return f"revert of {label}"
        return label


def _plain(value: Decimal) -> str:
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
