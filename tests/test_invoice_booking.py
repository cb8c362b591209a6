"""Tests for invoice booking with VAT split."""

from decimal import Decimal

import pytest
from sqlalchemy import select

from bankboeker.models import Account, Direction, InvoiceStatus, InvoiceType, JournalEntryType, JournalLine
from bankboeker.services.accounting import PostingError
from bankboeker.services.invoice_booking import book_invoice, split_vat
from tests.factories import ContactFactory, InvoiceFactory


async def _lines(db, entry_id):
    result = await db.execute(
        select(Account.code, JournalLine.direction, JournalLine.amount, JournalLine.description)
        .join(Account, JournalLine.account_id == Account.id)
        .where(JournalLine.journal_entry_id == entry_id)
    )
    return sorted(result.all(), key=lambda row: (row[1].value, row[0]))


class TestSplitVat:
    def test_standard_rate(self):
        split = split_vat(Decimal("121.00"), Decimal("21"))
        assert (split.net, split.vat) == (Decimal("100.00"), Decimal("21.00"))
        assert split.has_vat_line

    def test_low_rate_rounds_to_cents(self):
        split = split_vat(Decimal("10.00"), Decimal("9"))
        assert split.net == Decimal("9.17")
        assert split.vat == Decimal("0.83")
        assert split.net + split.vat == split.gross

    def test_no_rate(self):
        split = split_vat(Decimal("50.00"), None)
        assert (split.net, split.vat) == (Decimal("50.00"), Decimal("0.00"))
        assert not split.has_vat_line

    def test_negligible_vat_is_treated_as_zero(self):
        split = split_vat(Decimal("0.05"), Decimal("21"))
        assert split.net == Decimal("0.05")
        assert split.vat == Decimal("0.00")


@pytest.mark.asyncio
class TestBookInvoice:
    async def test_purchase_invoice_with_vat(self, db, chart):
        contact = await ContactFactory.create_async(db, name="Kantoorhuis BV")
        invoice = await InvoiceFactory.create_async(
            db, contact_id=contact.id, total_amount=Decimal("121.00"), vat_rate=Decimal("21")
        )

        entry = await book_invoice(db, invoice, chart["4700"].id)

        assert entry.entry_type == JournalEntryType.PURCHASE
        assert await _lines(db, entry.id) == [
            ("1600", Direction.CREDIT, Decimal("121.00"), f"Invoice {invoice.invoice_number}"),
            ("1450", Direction.DEBIT, Decimal("21.00"), "BTW"),
            ("4700", Direction.DEBIT, Decimal("100.00"), "Algemene kosten"),
        ]
        assert invoice.net_amount == Decimal("100.00")
        assert invoice.vat_amount == Decimal("21.00")
        assert invoice.journal_entry_id == entry.id

    async def test_sales_invoice_with_vat(self, db, chart):
        contact = await ContactFactory.create_async(db, name="Acme BV")
        invoice = await InvoiceFactory.create_async(
            db,
            contact_id=contact.id,
            invoice_type=InvoiceType.SALES,
            status=InvoiceStatus.SENT,
            total_amount=Decimal("242.00"),
            vat_rate=Decimal("21"),
        )

        entry = await book_invoice(db, invoice, chart["8000"].id)

        assert entry.entry_type == JournalEntryType.SALES
        lines = await _lines(db, entry.id)
        assert [(code, direction, amount) for code, direction, amount, _ in lines] == [
            ("1530", Direction.CREDIT, Decimal("42.00")),
            ("8000", Direction.CREDIT, Decimal("200.00")),
            ("1300", Direction.DEBIT, Decimal("242.00")),
        ]

    async def test_account_vat_rate_is_the_fallback(self, db, chart):
        chart["4530"].vat_rate = Decimal("21")
        contact = await ContactFactory.create_async(db, name="Softwarehuis BV")
        invoice = await InvoiceFactory.create_async(
            db, contact_id=contact.id, total_amount=Decimal("60.50"), vat_rate=None
        )

        await book_invoice(db, invoice, chart["4530"].id)

        assert invoice.net_amount == Decimal("50.00")
        assert invoice.vat_amount == Decimal("10.50")

    async def test_zero_vat_has_two_lines(self, db, chart):
        contact = await ContactFactory.create_async(db, name="Verzekeraar NV")
        invoice = await InvoiceFactory.create_async(
            db, contact_id=contact.id, total_amount=Decimal("80.00"), vat_rate=Decimal("0")
        )

        entry = await book_invoice(db, invoice, chart["4600"].id)

        lines = await _lines(db, entry.id)
        assert [(code, direction, amount) for code, direction, amount, _ in lines] == [
            ("1600", Direction.CREDIT, Decimal("80.00")),
            ("4600", Direction.DEBIT, Decimal("80.00")),
        ]

    @pytest.mark.parametrize(
        ("invoice_type", "code", "message"),
        [
            (InvoiceType.PURCHASE, "4200", "cannot be used"),
            (InvoiceType.PURCHASE, "8000", "cannot be used for a purchase invoice"),
            (InvoiceType.SALES, "4700", "cannot be used for a sales invoice"),
        ],
    )
    async def test_unusable_accounts(self, db, chart, invoice_type, code, message):
        contact = await ContactFactory.create_async(db, name="Acme BV")
        invoice = await InvoiceFactory.create_async(db, contact_id=contact.id, invoice_type=invoice_type)

        with pytest.raises(PostingError, match=message):
            await book_invoice(db, invoice, chart[code].id)
        assert invoice.journal_entry_id is None

    async def test_invoice_is_booked_once(self, db, chart):
        contact = await ContactFactory.create_async(db, name="Kantoorhuis BV")
        invoice = await InvoiceFactory.create_async(db, contact_id=contact.id)
        await book_invoice(db, invoice, chart["4700"].id)

        with pytest.raises(PostingError, match="already booked"):
            await book_invoice(db, invoice, chart["4700"].id)
