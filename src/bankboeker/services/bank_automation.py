"""Bank automation facade and batch orchestrator.

Every public method opens its own session, commits on success and rolls back
on failure. Methods never raise: failures come back as typed results with
``success=False``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bankboeker.config import Settings
from bankboeker.logger import async_log_timing, get_logger, log_exception
from bankboeker.models import BankTransaction, BankTransactionStatus, Invoice
from bankboeker.schemas import (
    CERTAIN,
    BatchItemDetail,
    BatchItemStatus,
    BatchReport,
    BookingMode,
    BookingSuggestion,
    ConfidenceOutcome,
    ErrorCode,
    LearnResult,
    MatchSource,
    PostingResult,
    RecordDecodeError,
    ResolveResult,
    ServiceResult,
    SettlementResult,
    TransactionRecord,
)
from bankboeker.services import invoice_booking, learning
from bankboeker.services.accounting import AccountingError
from bankboeker.services.enrichment import EnrichmentService
from bankboeker.services.matching_pipeline import MatchingPipeline
from bankboeker.services.openrouter_completion import OpenRouterCompletionClient
from bankboeker.services.posting import post_transaction, settle_transaction
from bankboeker.services.providers import CompletionProvider, SearchProvider
from bankboeker.services.rule_store import RuleStore, RuleStoreError
from bankboeker.services.tavily import TavilyClient
from bankboeker.utils.concurrency import ProgressCallback, run_bounded

logger = get_logger(__name__)

ResultT = TypeVar("ResultT", bound=ServiceResult)


class NotFoundError(LookupError):
    """A requested transaction or invoice does not exist."""


# Errors caused by the request or the data, as opposed to bugs or outages
INVALID_REQUEST_ERRORS: tuple[type[Exception], ...] = (
    AccountingError,
    RuleStoreError,
    RecordDecodeError,
    ValueError,
)


def _classify(exc: Exception) -> ErrorCode:
    if isinstance(exc, NotFoundError):
        return ErrorCode.NOT_FOUND
    if isinstance(exc, INVALID_REQUEST_ERRORS):
        return ErrorCode.INVALID
    return ErrorCode.INTERNAL


def _log_failure(exc: Exception, context: str, **extra: object) -> ErrorCode:
    code = _classify(exc)
    if code == ErrorCode.INTERNAL:
        log_exception(logger, exc, context, **extra)
    else:
        log_exception(logger, exc, context, level="warning", include_traceback=False, **extra)
    return code


async def _get_transaction(db: AsyncSession, transaction_id: UUID) -> BankTransaction:
    transaction = await db.get(BankTransaction, transaction_id)
    if transaction is None:
        raise NotFoundError(f"Transaction {transaction_id} not found")
    return transaction


async def _lock_transaction(db: AsyncSession, transaction_id: UUID) -> BankTransaction:
    # Row lock on PostgreSQL; a concurrent batch waits and then sees the new status
    result = await db.execute(
        select(BankTransaction).where(BankTransaction.id == transaction_id).with_for_update()
    )
    transaction = result.scalar_one_or_none()
    if transaction is None:
        raise NotFoundError(f"Transaction {transaction_id} not found")
    return transaction


async def _get_invoice(db: AsyncSession, invoice_id: UUID) -> Invoice:
    invoice = await db.get(Invoice, invoice_id)
    if invoice is None:
        raise NotFoundError(f"Invoice {invoice_id} not found")
    return invoice


class BankAutomationService:
    """Resolve, post, learn and batch-process bank transactions."""

    def __init__(
        self,
        config: Settings,
        session_maker: async_sessionmaker[AsyncSession],
        search_provider: SearchProvider | None = None,
        completion_provider: CompletionProvider | None = None,
    ):
        self.config = config
        self.session_maker = session_maker
        self.rule_store = RuleStore()
        self.enrichment = EnrichmentService(config, search_provider, completion_provider)
        self.pipeline = MatchingPipeline(config, self.enrichment, self.rule_store)

    async def _run(
        self,
        context: str,
        action: Callable[[AsyncSession], Awaitable[ResultT]],
        on_error: Callable[[str, ErrorCode], ResultT],
        **log_context: object,
    ) -> ResultT:
        async with self.session_maker() as db:
            try:
                result = await action(db)
                await db.commit()
                return result
            except Exception as exc:
                await db.rollback()
                code = _log_failure(exc, context, **log_context)
                return on_error(str(exc), code)

    async def resolve(self, transaction_id: UUID) -> ResolveResult:
        """Run the matching pipeline without posting anything."""

        async def action(db: AsyncSession) -> ResolveResult:
            transaction = TransactionRecord.decode(await _get_transaction(db, transaction_id))
            outcome = await self.pipeline.resolve(db, transaction)
            return ResolveResult(transaction_id=transaction_id, outcome=outcome)

        def on_error(message: str, code: ErrorCode) -> ResolveResult:
            return ResolveResult(
                success=False,
                error=message,
                error_code=code,
                transaction_id=transaction_id,
                outcome=ConfidenceOutcome.no_match(reason=message),
            )

        return await self._run("Resolve failed", action, on_error, transaction_id=str(transaction_id))

    async def post(self, transaction_id: UUID, outcome: ConfidenceOutcome) -> PostingResult:
        """Post a previously resolved outcome."""

        async def action(db: AsyncSession) -> PostingResult:
            transaction = await _lock_transaction(db, transaction_id)
            receipt = await post_transaction(db, transaction, outcome)
            return PostingResult(
                journal_entry_id=receipt.journal_entry_id,
                journal_entry_ids=receipt.journal_entry_ids,
                status=receipt.status.value,
            )

        return await self._run(
            "Posting failed",
            action,
            lambda message, code: PostingResult(success=False, error=message, error_code=code),
            transaction_id=str(transaction_id),
        )

    async def book_manual(
        self,
        transaction_id: UUID,
        mode: BookingMode,
        account_id: UUID,
        contact_id: UUID | None = None,
    ) -> PostingResult:
        """Post a user's choice and learn a rule from it."""
        outcome = ConfidenceOutcome(
            score=CERTAIN,
            reason="Manual booking",
            source=MatchSource.MANUAL,
            suggestion=BookingSuggestion(mode=mode, account_id=account_id, contact_id=contact_id),
        )

        async def action(db: AsyncSession) -> PostingResult:
            transaction = await _lock_transaction(db, transaction_id)
            receipt = await post_transaction(db, transaction, outcome)
            await learning.learn(db, transaction, mode, account_id, contact_id, self.rule_store)
            return PostingResult(
                journal_entry_id=receipt.journal_entry_id,
                journal_entry_ids=receipt.journal_entry_ids,
                status=receipt.status.value,
            )

        return await self._run(
            "Manual booking failed",
            action,
            lambda message, code: PostingResult(success=False, error=message, error_code=code),
            transaction_id=str(transaction_id),
        )

    async def learn(
        self,
        transaction_id: UUID,
        mode: BookingMode,
        account_id: UUID,
        contact_id: UUID | None = None,
    ) -> LearnResult:
        async def action(db: AsyncSession) -> LearnResult:
            transaction = await _get_transaction(db, transaction_id)
            learned = await learning.learn(db, transaction, mode, account_id, contact_id, self.rule_store)
            if learned is None:
                return LearnResult()
            rule, created = learned
            return LearnResult(rule_id=rule.id, created=created)

        return await self._run(
            "Learning failed",
            action,
            lambda message, code: LearnResult(success=False, error=message, error_code=code),
            transaction_id=str(transaction_id),
        )

    async def settle(self, transaction_id: UUID, invoice_id: UUID) -> SettlementResult:
        async def action(db: AsyncSession) -> SettlementResult:
            transaction = await _lock_transaction(db, transaction_id)
            invoice = await _get_invoice(db, invoice_id)
            entry = await settle_transaction(db, transaction, invoice)
            return SettlementResult(journal_entry_id=entry.id)

        return await self._run(
            "Settlement failed",
            action,
            lambda message, code: SettlementResult(success=False, error=message, error_code=code),
            transaction_id=str(transaction_id),
            invoice_id=str(invoice_id),
        )

    async def book_invoice(self, invoice_id: UUID, account_id: UUID) -> PostingResult:
        async def action(db: AsyncSession) -> PostingResult:
            invoice = await _get_invoice(db, invoice_id)
            entry = await invoice_booking.book_invoice(db, invoice, account_id)
            return PostingResult(journal_entry_id=entry.id, journal_entry_ids=[entry.id])

        return await self._run(
            "Invoice booking failed",
            action,
            lambda message, code: PostingResult(success=False, error=message, error_code=code),
            invoice_id=str(invoice_id),
        )

    async def process_transaction(self, transaction_id: UUID) -> BatchItemDetail:
        """Resolve and, when confident enough, post and learn one transaction."""
        async with self.session_maker() as db:
            try:
                transaction = await _lock_transaction(db, transaction_id)
                if transaction.status != BankTransactionStatus.UNMATCHED:
                    return BatchItemDetail(
                        transaction_id=transaction_id,
                        status=BatchItemStatus.SKIPPED,
                        reason=f"Transaction is {transaction.status.value}",
                    )

                record = TransactionRecord.decode(transaction)
                outcome = await self.pipeline.resolve(db, record)

                if not outcome.is_actionable(self.config.auto_book_threshold):
                    transaction.confidence_score = outcome.score
                    transaction.ai_suggestion = outcome.model_dump(mode="json")
                    await db.commit()
                    return BatchItemDetail(
                        transaction_id=transaction_id,
                        status=BatchItemStatus.NEEDS_REVIEW,
                        mode=outcome.suggestion.mode if outcome.suggestion else None,
                        confidence=outcome.score,
                        reason=outcome.reason,
                    )

                suggestion = outcome.suggestion
                receipt = await post_transaction(db, transaction, outcome, auto_booked=True)
                await learning.learn(
                    db,
                    transaction,
                    suggestion.mode,
                    suggestion.account_id,
                    suggestion.contact_id,
                    self.rule_store,
                )
                await db.commit()
                return BatchItemDetail(
                    transaction_id=transaction_id,
                    status=BatchItemStatus.AUTO_BOOKED,
                    mode=suggestion.mode,
                    confidence=outcome.score,
                    reason=outcome.reason,
                    journal_entry_id=receipt.journal_entry_id,
                )
            except Exception as exc:
                await db.rollback()
                _log_failure(exc, "Batch item failed", transaction_id=str(transaction_id))
                return BatchItemDetail(
                    transaction_id=transaction_id,
                    status=BatchItemStatus.ERROR,
                    error=str(exc),
                )

    async def run_batch(
        self,
        transaction_ids: list[UUID],
        concurrency_limit: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchReport:
        """Process many transactions with bounded concurrency.

        One failing transaction never aborts the batch; it is reported as an
        error and the others continue. Repeated ids are processed once.
        """
        unique_ids = list(dict.fromkeys(transaction_ids))
        limit = max(1, concurrency_limit or self.config.batch_concurrency)
        report = BatchReport()

        async with async_log_timing("bank_batch", logger=logger, size=len(unique_ids), limit=limit) as timing:
            outcomes = await run_bounded(unique_ids, self.process_transaction, limit, on_progress)

            for outcome in outcomes:
                if outcome.value is not None:
                    detail = outcome.value
                else:
                    detail = BatchItemDetail(
                        transaction_id=outcome.item,
                        status=BatchItemStatus.ERROR,
                        error=str(outcome.error),
                    )
                report.details.append(detail)
                report.total_processed += 1

                if detail.status == BatchItemStatus.AUTO_BOOKED:
                    report.auto_booked += 1
                    if detail.mode == BookingMode.RELATION:
                        report.auto_booked_relation += 1
                    else:
                        report.auto_booked_direct += 1
                elif detail.status == BatchItemStatus.NEEDS_REVIEW:
                    report.needs_review += 1
                elif detail.status == BatchItemStatus.SKIPPED:
                    report.skipped += 1
                else:
                    report.errors += 1

            timing["auto_booked"] = report.auto_booked
            timing["needs_review"] = report.needs_review
            timing["errors"] = report.errors

        return report


def build_automation_service(
    config: Settings, session_maker: async_sessionmaker[AsyncSession]
) -> BankAutomationService:
    """Wire the real providers for whichever credentials are configured."""
    search_provider = None
    if config.search_enabled:
        search_provider = TavilyClient(
            config.tavily_api_key,
            base_url=config.tavily_base_url,
            timeout=config.enrichment_timeout_seconds,
        )

    completion_provider = None
    if config.llm_enabled:
        completion_provider = OpenRouterCompletionClient(
            config.openrouter_api_key,
            model=config.primary_model,
            base_url=config.openrouter_base_url,
            temperature=config.llm_temperature,
            max_tokens=config.llm_max_tokens,
            timeout=config.enrichment_timeout_seconds,
        )

    logger.info(
        "Bank automation configured",
        search=search_provider is not None,
        llm=completion_provider is not None,
    )
    return BankAutomationService(config, session_maker, search_provider, completion_provider)
