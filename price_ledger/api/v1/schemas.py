from datetime import datetime
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field, PlainSerializer

from price_ledger.domain.entities.journal_entry import RecordKind
from price_ledger.domain.entities.price_change import ChangeKind

# Decimals travel as plain strings ("110.00", never "1.1E+2") so no float rounding sneaks in
Money = Annotated[Decimal, PlainSerializer(lambda v: format(v, "f"), return_type=str, when_used="json")]


class PriceChangeRequestSchema(BaseModel):
    kind: ChangeKind
    amount: Decimal = Field(gt=0)
    is_percentage: bool = True
    category_id: str | None = None
    performed_by: str | None = None


class RevertRequestSchema(BaseModel):
    performed_by: str | None = None


class PriceRangeSchema(BaseModel):
    min: Money
    max: Money


class PreviewItemSchema(BaseModel):
    service_id: str
    name: str | None = None
    old_price: Money
    new_price: Money
    difference: Money
    percent_difference: Money


class PreviewResponseSchema(BaseModel):
    affected_count: int
    current_price_range: PriceRangeSchema
    new_price_range: PriceRangeSchema
    items: list[PreviewItemSchema] = Field(default_factory=list)


class JournalEntrySchema(BaseModel):
    id: str
    record_kind: RecordKind
    kind: ChangeKind
    amount: Money
    is_percentage: bool
    category_id: str | None = None
    category_name: str | None = None
    affected_count: int
    created_at: datetime
    sequence: int
    old_prices: dict[str, Money] = Field(default_factory=dict)
    is_reverted: bool
    reverted_at: datetime | None = None
    performed_by: str | None = None
    reverts_entry_id: str | None = None
    description: str
    can_revert: bool | None = None


class JournalListResponseSchema(BaseModel):
    entries: list[JournalEntrySchema]


class ErrorSchema(BaseModel):
    error: str
    message: str
    blocking_entry_ids: list[str] | None = None
