"""Bank automation API router."""

from typing import NoReturn
from uuid import UUID

from fastapi import APIRouter, Query, status

from bankboeker.deps import AutomationService, DbSession
from bankboeker.schemas import (
    BatchReport,
    BatchRequest,
    ErrorCode,
    InvoiceBookingRequest,
    ManualBookingRequest,
    PostingResult,
    ResolveResult,
    RuleRecord,
    ServiceResult,
    SettlementRequest,
    SettlementResult,
)
from bankboeker.services import RuleNotFoundError, RuleProtectedError, RuleStore
from bankboeker.utils import raise_bad_request, raise_internal_error, raise_not_found

router = APIRouter(prefix="/bank-automation", tags=["bank-automation"])


def _raise_for(result: ServiceResult, resource_name: str) -> NoReturn:
    if result.error_code == ErrorCode.NOT_FOUND:
        raise_not_found(resource_name)
    if result.error_code == ErrorCode.INTERNAL:
        raise_internal_error(result.error or "Internal error")
    raise_bad_request(result.error or "Request failed")


@router.post("/transactions/{transaction_id}/analyze", response_model=ResolveResult)
async def analyze_transaction(transaction_id: UUID, service: AutomationService) -> ResolveResult:
    """Run the matching pipeline and return the suggestion without booking."""
    result = await service.resolve(transaction_id)
    if not result.success:
        _raise_for(result, "Transaction")
    return result


@router.post("/transactions/{transaction_id}/book", response_model=PostingResult)
async def book_transaction(
    transaction_id: UUID,
    payload: ManualBookingRequest,
    service: AutomationService,
) -> PostingResult:
    """Book a transaction to the chosen account and learn a rule from it."""
    result = await service.book_manual(
        transaction_id, payload.mode, payload.account_id, payload.contact_id
    )
    if not result.success:
        _raise_for(result, "Transaction")
    return result


@router.post("/transactions/{transaction_id}/settle", response_model=SettlementResult)
async def settle_transaction(
    transaction_id: UUID,
    payload: SettlementRequest,
    service: AutomationService,
) -> SettlementResult:
    result = await service.settle(transaction_id, payload.invoice_id)
    if not result.success:
        _raise_for(result, "Transaction or invoice")
    return result


@router.post("/invoices/{invoice_id}/book", response_model=PostingResult)
async def book_invoice(
    invoice_id: UUID,
    payload: InvoiceBookingRequest,
    service: AutomationService,
) -> PostingResult:
    result = await service.book_invoice(invoice_id, payload.account_id)
    if not result.success:
        _raise_for(result, "Invoice")
    return result


@router.post("/batch", response_model=BatchReport)
async def run_batch(payload: BatchRequest, service: AutomationService) -> BatchReport:
    """Resolve and auto-book a batch of transactions."""
    return await service.run_batch(payload.transaction_ids, payload.concurrency_limit)


@router.get("/rules", response_model=list[RuleRecord])
async def list_rules(
    db: DbSession,
    include_inactive: bool = Query(False),
) -> list[RuleRecord]:
    rules = await RuleStore().list_rules(db, include_inactive=include_inactive)
    return [RuleRecord.decode(rule) for rule in rules]


@router.delete("/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rule(
    rule_id: UUID,
    db: DbSession,
    force: bool = Query(False),
) -> None:
    try:
        await RuleStore().delete_rule(db, rule_id, force=force)
    except RuleNotFoundError as exc:
        raise_not_found("Rule", cause=exc)
    except RuleProtectedError as exc:
        raise_bad_request(str(exc), cause=exc)
    await db.commit()
