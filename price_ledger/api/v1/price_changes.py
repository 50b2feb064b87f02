from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from price_ledger.api.v1.schemas import (
    ErrorSchema,
    JournalEntrySchema,
    JournalListResponseSchema,
    PriceChangeRequestSchema,
    PriceRangeSchema,
    PreviewItemSchema,
    PreviewResponseSchema,
    RevertRequestSchema,
)
from price_ledger.domain.exceptions import (
    LedgerError,
    NotFound,
    OutOfOrderRevert,
    TransactionAborted,
    ValidationError,
)
from price_ledger.application.use_cases.apply_price_change import ApplyPriceChangeUseCase
from price_ledger.application.use_cases.list_journal import ListJournalUseCase
from price_ledger.application.use_cases.preview_price_change import PreviewPriceChangeUseCase
from price_ledger.application.use_cases.revert_price_change import RevertPriceChangeUseCase
from price_ledger.domain.entities.journal_entry import JournalEntry
from price_ledger.domain.entities.price_change import ChangeSpecification
from price_ledger.wiring.dependencies import (
    get_apply_use_case,
    get_list_journal_use_case,
    get_preview_use_case,
    get_revert_use_case,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _status_code(error: LedgerError) -> int:
    if isinstance(error, ValidationError):
        return 422
    if isinstance(error, NotFound):
        return 404
    if isinstance(error, TransactionAborted):
        return 503
    return 409


def _http_error(error: LedgerError) -> HTTPException:
    body = ErrorSchema(
        error=error.code,
        message=str(error),
        blocking_entry_ids=error.blocking_entry_ids if isinstance(error, OutOfOrderRevert) else None,
    )
    logger.info("Price change request rejected", extra={"reason": error.code})
    return HTTPException(status_code=_status_code(error), detail=body.model_dump(exclude_none=True))


def _spec(req: PriceChangeRequestSchema) -> ChangeSpecification:
    return ChangeSpecification(
        kind=req.kind,
        amount=req.amount,
        is_percentage=req.is_percentage,
        category_id=req.category_id,
    )


def _entry_schema(entry: JournalEntry, can_revert: bool | None = None) -> JournalEntrySchema:
    return JournalEntrySchema(
        id=entry.id,
        record_kind=entry.record_kind,
        kind=entry.kind,
        amount=entry.amount,
        is_percentage=entry.is_percentage,
        category_id=entry.category_id,
        category_name=entry.category_name,
        affected_count=entry.affected_count,
        created_at=entry.created_at,
        sequence=entry.sequence,
        old_prices=dict(entry.old_prices),
        is_reverted=entry.is_reverted,
        reverted_at=entry.reverted_at,
        performed_by=entry.performed_by,
        reverts_entry_id=entry.reverts_entry_id,
        description=entry.describe(),
        can_revert=can_revert,
    )


@router.post("/price-changes/preview", response_model=PreviewResponseSchema)
def preview_price_change(
    req: PriceChangeRequestSchema,
    uc: PreviewPriceChangeUseCase = Depends(get_preview_use_case),
):
    try:
        result = uc.execute(_spec(req))
    except LedgerError as e:
        raise _http_error(e)

    return PreviewResponseSchema(
        affected_count=result.affected_count,
        current_price_range=PriceRangeSchema(min=result.current_price_range.min, max=result.current_price_range.max),
        new_price_range=PriceRangeSchema(min=result.new_price_range.min, max=result.new_price_range.max),
        items=[
            PreviewItemSchema(
                service_id=item.service_id,
                name=item.name,
                old_price=item.old_price,
                new_price=item.new_price,
                difference=item.difference,
                percent_difference=item.percent_difference,
            )
            for item in result.items
        ],
    )


@router.post("/price-changes", response_model=JournalEntrySchema, status_code=201)
def apply_price_change(
    req: PriceChangeRequestSchema,
    uc: ApplyPriceChangeUseCase = Depends(get_apply_use_case),
):
    try:
        entry = uc.execute(_spec(req), performed_by=req.performed_by)
    except LedgerError as e:
        raise _http_error(e)
    return _entry_schema(entry)


@router.get("/price-changes", response_model=JournalListResponseSchema)
def list_price_changes(
    limit: int | None = Query(None, ge=1),
    uc: ListJournalUseCase = Depends(get_list_journal_use_case),
):
    try:
        listings = uc.execute(limit=limit)
    except LedgerError as e:
        raise _http_error(e)
    return JournalListResponseSchema(
        entries=[_entry_schema(listing.entry, can_revert=listing.can_revert) for listing in listings]
    )


@router.post("/price-changes/{entry_id}/revert", response_model=JournalEntrySchema, status_code=201)
def revert_price_change(
    entry_id: str,
    req: RevertRequestSchema | None = None,
    uc: RevertPriceChangeUseCase = Depends(get_revert_use_case),
):
    try:
        entry = uc.execute(entry_id, performed_by=req.performed_by if req else None)
    except LedgerError as e:
        raise _http_error(e)
    return _entry_schema(entry)
