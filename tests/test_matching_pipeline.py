"""Tests for the confidence resolver stages and their priority."""

from datetime import date
from decimal import Decimal

import pytest

from bankboeker.models import BankTransactionStatus, InvoiceStatus, InvoiceType
from bankboeker.schemas import BookingMode, MatchSource, TransactionRecord
from bankboeker.services.enrichment import EnrichmentService
from bankboeker.services.matching_pipeline import MatchingPipeline
from bankboeker.services.providers import ProviderError
from tests.factories import (
    BankRuleFactory,
    BankTransactionFactory,
    ContactFactory,
    InvoiceFactory,
)


class BrokenEnrichment(EnrichmentService):
    async def enrich(self, db, name, **kwargs):
        raise ProviderError("search backend unavailable")


@pytest.fixture
def pipeline(test_settings):
    return MatchingPipeline(test_settings, EnrichmentService(test_settings))


async def _resolve(pipeline, db, **kwargs):
    transaction = await BankTransactionFactory.create_async(db, **kwargs)
    return await pipeline.resolve(db, TransactionRecord.decode(transaction))


@pytest.mark.asyncio
class TestStages:
    async def test_known_vendor_books_direct(self, db, chart, pipeline):
        outcome = await _resolve(pipeline, db)

        assert outcome.source == MatchSource.VENDOR_DEFAULT
        assert outcome.score == 100
        assert outcome.suggestion.mode == BookingMode.DIRECT
        assert outcome.suggestion.account_id == chart["4310"].id
        assert outcome.reason == "Known vendor 'shell' (Brandstofkosten)"

    async def test_rule_beats_vendor(self, db, chart, pipeline):
        await BankRuleFactory.create_async(db, keyword="shell", target_account_id=chart["4700"].id)

        outcome = await _resolve(pipeline, db)

        assert outcome.source == MatchSource.RULE
        assert outcome.suggestion.account_id == chart["4700"].id
        assert outcome.suggestion.mode == BookingMode.DIRECT

    async def test_rule_with_contact_uses_contact_default(self, db, chart, pipeline):
        contact = await ContactFactory.create_async(
            db, name="Shell Nederland", default_ledger_account_id=chart["4310"].id
        )
        await BankRuleFactory.create_async(db, keyword="shell", contact_id=contact.id)

        outcome = await _resolve(pipeline, db)

        assert outcome.source == MatchSource.RULE
        assert outcome.suggestion.mode == BookingMode.RELATION
        assert outcome.suggestion.contact_id == contact.id
        assert outcome.suggestion.account_id == chart["4310"].id

    async def test_rule_with_blacklisted_account_is_not_postable(self, db, chart, pipeline):
        await BankRuleFactory.create_async(db, keyword="shell", target_account_id=chart["4900"].id)

        outcome = await _resolve(pipeline, db)

        assert outcome.source == MatchSource.RULE
        assert outcome.suggestion.account_id is None
        assert not outcome.is_actionable(70)

    async def test_known_relation(self, db, chart, pipeline):
        contact = await ContactFactory.create_async(
            db, name="Acme BV", default_ledger_account_id=chart["8000"].id
        )

        outcome = await _resolve(
            pipeline, db, amount=Decimal("1210.00"), contra_name="ACME BV", description="Factuur 2024-001"
        )

        assert outcome.source == MatchSource.CRM
        assert outcome.score == 100
        assert outcome.suggestion.mode == BookingMode.RELATION
        assert outcome.suggestion.contact_id == contact.id
        assert outcome.suggestion.account_id == chart["8000"].id

    async def test_unknown_counterparty_goes_to_enrichment(self, db, chart, pipeline):
        outcome = await _resolve(
            pipeline,
            db,
            amount=Decimal("-12.50"),
            contra_name="BAKKERIJ DE VRIES",
            description="BEA 08:12 BAKKERIJ DE VRIES",
        )

        assert outcome.source == MatchSource.EXTERNAL_ENRICHMENT
        assert outcome.score == 75
        assert outcome.suggestion.mode == BookingMode.DIRECT
        assert outcome.suggestion.account_id == chart["4360"].id

    async def test_nothing_matches(self, db, chart, pipeline):
        outcome = await _resolve(pipeline, db, contra_name="XYZ HOLDING", description="Overboeking")

        assert outcome.source == MatchSource.NONE
        assert outcome.score == 0
        assert outcome.suggestion is None
        assert not outcome.is_actionable(0)

    async def test_enrichment_failure_becomes_no_match(self, db, chart, test_settings):
        pipeline = MatchingPipeline(test_settings, BrokenEnrichment(test_settings))

        outcome = await _resolve(pipeline, db, contra_name="XYZ HOLDING", description="Overboeking")

        assert outcome.source == MatchSource.NONE
        assert outcome.score == 0
        assert outcome.reason == "Enrichment failed: search backend unavailable"


@pytest.mark.asyncio
class TestInvoiceStage:
    async def _supplier(self, db, chart):
        return await ContactFactory.create_async(
            db, name="Tankstation Jansen", default_ledger_account_id=chart["4310"].id
        )

    async def test_open_purchase_invoice_within_window(self, db, chart, pipeline):
        contact = await self._supplier(db, chart)
        invoice = await InvoiceFactory.create_async(
            db,
            contact_id=contact.id,
            total_amount=Decimal("45.31"),
            invoice_date=date(2024, 12, 27),
        )

        outcome = await _resolve(pipeline, db)

        assert outcome.source == MatchSource.INVOICE
        assert outcome.score == 100
        assert outcome.suggestion.mode == BookingMode.RELATION
        assert outcome.suggestion.invoice_id == invoice.id
        assert outcome.suggestion.contact_id == contact.id
        assert outcome.suggestion.account_id == chart["4310"].id

    async def test_earliest_invoice_wins(self, db, chart, pipeline):
        contact = await self._supplier(db, chart)
        await InvoiceFactory.create_async(
            db, contact_id=contact.id, total_amount=Decimal("45.30"), invoice_date=date(2024, 12, 30)
        )
        earliest = await InvoiceFactory.create_async(
            db, contact_id=contact.id, total_amount=Decimal("45.30"), invoice_date=date(2024, 12, 25)
        )

        outcome = await _resolve(pipeline, db)

        assert outcome.suggestion.invoice_id == earliest.id

    @pytest.mark.parametrize(
        ("invoice_date", "total", "status", "invoice_type"),
        [
            (date(2025, 1, 5), Decimal("45.30"), InvoiceStatus.PENDING, InvoiceType.PURCHASE),
            (date(2024, 12, 20), Decimal("45.30"), InvoiceStatus.PENDING, InvoiceType.PURCHASE),
            (date(2024, 12, 24), Decimal("45.40"), InvoiceStatus.PENDING, InvoiceType.PURCHASE),
            (date(2024, 12, 24), Decimal("45.30"), InvoiceStatus.PAID, InvoiceType.PURCHASE),
            (date(2024, 12, 24), Decimal("45.30"), InvoiceStatus.SENT, InvoiceType.SALES),
        ],
    )
    async def test_non_matching_invoices(self, db, chart, pipeline, invoice_date, total, status, invoice_type):
        contact = await self._supplier(db, chart)
        await InvoiceFactory.create_async(
            db,
            contact_id=contact.id,
            total_amount=total,
            invoice_date=invoice_date,
            status=status,
            invoice_type=invoice_type,
        )

        outcome = await _resolve(pipeline, db)

        assert outcome.source == MatchSource.VENDOR_DEFAULT

    async def test_invoice_already_matched_is_skipped(self, db, chart, pipeline):
        contact = await self._supplier(db, chart)
        invoice = await InvoiceFactory.create_async(db, contact_id=contact.id, total_amount=Decimal("45.30"))
        await BankTransactionFactory.create_async(
            db,
            status=BankTransactionStatus.PENDING,
            matched_invoice_id=invoice.id,
            contact_id=contact.id,
        )

        outcome = await _resolve(pipeline, db)

        assert outcome.source == MatchSource.VENDOR_DEFAULT

    async def test_incoming_payment_matches_sent_sales_invoice(self, db, chart, pipeline):
        customer = await ContactFactory.create_async(
            db, name="Globex BV", default_ledger_account_id=chart["8000"].id
        )
        invoice = await InvoiceFactory.create_async(
            db,
            contact_id=customer.id,
            invoice_type=InvoiceType.SALES,
            status=InvoiceStatus.SENT,
            total_amount=Decimal("1210.00"),
        )

        outcome = await _resolve(
            pipeline, db, amount=Decimal("1210.00"), contra_name="Stichting Klant", description="Betaling"
        )

        assert outcome.source == MatchSource.INVOICE
        assert outcome.suggestion.invoice_id == invoice.id
        assert outcome.suggestion.account_id == chart["8000"].id
