"""Confidence resolver: run the matcher stages in priority order.

Stages, first hit wins:

1. open invoice with the same amount
2. user rule
3. relation (CRM) name match
4. static vendor table
5. external enrichment

Each stage sees the same cleaned counterparty text. The outcome is the only
thing handed to the poster.
"""

from datetime import timedelta
from uuid import UUID

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from bankboeker.config import Settings
from bankboeker.logger import get_logger
from bankboeker.models import BankTransaction, Contact, Invoice, InvoiceStatus, InvoiceType
from bankboeker.schemas import (
    CERTAIN,
    BookingMode,
    BookingSuggestion,
    ConfidenceOutcome,
    InvoiceRecord,
    MatchSource,
    RecordDecodeError,
    TransactionRecord,
)
from bankboeker.services.account_lookup import get_active_account, is_blacklisted_code
from bankboeker.services.enrichment import EnrichmentService
from bankboeker.services.providers import PROVIDER_FAILURES
from bankboeker.services.relation_matcher import find_relation
from bankboeker.services.rule_store import RuleStore
from bankboeker.services.text_normalizer import extract_city, select_match_text
from bankboeker.services.vendor_heuristics import find_vendor_account

logger = get_logger(__name__)

OPEN_PURCHASE_STATUSES = (InvoiceStatus.PENDING, InvoiceStatus.OVERDUE)
OPEN_SALES_STATUSES = (InvoiceStatus.SENT,)


class MatchingPipeline:
    """Resolve one transaction to a confidence outcome."""

    def __init__(
        self,
        config: Settings,
        enrichment: EnrichmentService | None = None,
        rule_store: RuleStore | None = None,
    ):
        self.config = config
        self.enrichment = enrichment
        self.rule_store = rule_store or RuleStore()

    async def resolve(self, db: AsyncSession, transaction: TransactionRecord) -> ConfidenceOutcome:
        text = select_match_text(transaction.contra_name, transaction.description)

        outcome = await self._match_invoice(db, transaction)
        if outcome is None:
            outcome = await self._match_rule(db, text)
        if outcome is None:
            outcome = await self._match_relation(db, text, transaction)
        if outcome is None:
            outcome = await self._match_vendor(db, text)
        if outcome is None:
            outcome = await self._match_enrichment(db, text, transaction)
        if outcome is None:
            outcome = ConfidenceOutcome.no_match()

        logger.info(
            "Transaction resolved",
            transaction_id=str(transaction.id),
            match_text=text,
            source=outcome.source.value,
            score=outcome.score,
        )
        return outcome

    async def _usable_account_id(self, db: AsyncSession, account_id: UUID | None) -> UUID | None:
        if account_id is None:
            return None
        account = await get_active_account(db, account_id)
        if account is None or is_blacklisted_code(account.code):
            return None
        return account.id

    async def _contact_default_account(self, db: AsyncSession, contact_id: UUID | None) -> UUID | None:
        if contact_id is None:
            return None
        contact = await db.get(Contact, contact_id)
        if contact is None:
            return None
        return await self._usable_account_id(db, contact.default_ledger_account_id)

    async def _match_invoice(
        self, db: AsyncSession, transaction: TransactionRecord
    ) -> ConfidenceOutcome | None:
        if transaction.amount == 0:
            return None

        if transaction.is_outgoing:
            invoice_type, statuses = InvoiceType.PURCHASE, OPEN_PURCHASE_STATUSES
        else:
            invoice_type, statuses = InvoiceType.SALES, OPEN_SALES_STATUSES

        amount = transaction.absolute_amount
        tolerance = self.config.invoice_amount_tolerance
        window_end = transaction.transaction_date + timedelta(days=self.config.invoice_match_window_days)
        already_matched = exists().where(BankTransaction.matched_invoice_id == Invoice.id)

        result = await db.execute(
            select(Invoice)
            .where(Invoice.invoice_type == invoice_type)
            .where(Invoice.status.in_(statuses))
            .where(Invoice.total_amount >= amount - tolerance)
            .where(Invoice.total_amount <= amount + tolerance)
            .where(Invoice.invoice_date >= transaction.transaction_date)
            .where(Invoice.invoice_date <= window_end)
            .where(~already_matched)
            .order_by(Invoice.invoice_date.asc(), Invoice.created_at.asc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None

        invoice = InvoiceRecord.decode(row)
        account_id = await self._contact_default_account(db, invoice.contact_id)
        return ConfidenceOutcome(
            score=CERTAIN,
            reason=f"Matched open {invoice.invoice_type.value} invoice {invoice.invoice_number}",
            source=MatchSource.INVOICE,
            suggestion=BookingSuggestion(
                mode=BookingMode.RELATION,
                account_id=account_id,
                contact_id=invoice.contact_id,
                invoice_id=invoice.id,
                description=f"Invoice {invoice.invoice_number}",
            ),
        )

    async def _match_rule(self, db: AsyncSession, text: str) -> ConfidenceOutcome | None:
        rule = await self.rule_store.find_matching_rule(db, text)
        if rule is None:
            return None

        account_id = await self._usable_account_id(db, rule.target_account_id)
        if account_id is None:
            account_id = await self._contact_default_account(db, rule.contact_id)

        mode = BookingMode.RELATION if rule.contact_id else BookingMode.DIRECT
        return ConfidenceOutcome(
            score=CERTAIN,
            reason=f"Bank rule '{rule.keyword}'",
            source=MatchSource.RULE,
            suggestion=BookingSuggestion(
                mode=mode,
                account_id=account_id,
                contact_id=rule.contact_id,
                description=rule.keyword,
            ),
        )

    async def _match_relation(
        self, db: AsyncSession, text: str, transaction: TransactionRecord
    ) -> ConfidenceOutcome | None:
        match = await find_relation(
            db,
            text,
            self.enrichment,
            description=transaction.description,
            amount=transaction.amount,
        )
        if match is None:
            return None

        reason = f"Known relation '{match.relation.name}'"
        if match.enrichment is not None:
            reason = f"{reason}; {match.enrichment.reason}"
        elif match.account_id is None:
            reason = f"{reason}; account needs manual selection"

        return ConfidenceOutcome(
            score=CERTAIN,
            reason=reason,
            source=MatchSource.CRM,
            suggestion=BookingSuggestion(
                mode=BookingMode.RELATION,
                account_id=match.account_id,
                contact_id=match.relation.id,
                description=match.relation.name,
            ),
        )

    async def _match_vendor(self, db: AsyncSession, text: str) -> ConfidenceOutcome | None:
        found = await find_vendor_account(db, text)
        if found is None:
            return None

        vendor, account = found
        return ConfidenceOutcome(
            score=CERTAIN,
            reason=f"Known vendor '{vendor.keyword}' ({vendor.category})",
            source=MatchSource.VENDOR_DEFAULT,
            suggestion=BookingSuggestion(
                mode=BookingMode.DIRECT,
                account_id=account.id,
                description=vendor.category,
            ),
        )

    async def _match_enrichment(
        self, db: AsyncSession, text: str, transaction: TransactionRecord
    ) -> ConfidenceOutcome | None:
        if self.enrichment is None or not text:
            return None

        try:
            result = await self.enrichment.enrich(
                db,
                text,
                city=extract_city(transaction.description),
                amount=transaction.absolute_amount,
            )
        except (*PROVIDER_FAILURES, RecordDecodeError) as exc:
            logger.warning(
                "Enrichment failed",
                transaction_id=str(transaction.id),
                error=str(exc),
            )
            return ConfidenceOutcome.no_match(reason=f"Enrichment failed: {exc}")

        if result is None:
            return None

        mode = BookingMode.RELATION if result.contact_id else BookingMode.DIRECT
        return ConfidenceOutcome(
            score=result.confidence,
            reason=result.reason,
            source=MatchSource.EXTERNAL_ENRICHMENT,
            suggestion=BookingSuggestion(
                mode=mode,
                account_id=result.account_id,
                contact_id=result.contact_id,
                description=result.account_name,
            ),
        )

