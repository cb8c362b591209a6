"""Invoice booking with a VAT split."""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from bankboeker.logger import get_logger
from bankboeker.models import (
    AccountType,
    Direction,
    Invoice,
    InvoiceType,
    JournalEntry,
    JournalEntrySourceType,
    JournalEntryType,
)
from bankboeker.services.account_lookup import (
    SystemAccountRole,
    find_system_account,
    get_active_account,
    is_blacklisted_code,
)
from bankboeker.services.accounting import (
    LineSpec,
    PostingError,
    build_journal_entry,
    persist_journal_entries,
    to_cents,
)

logger = get_logger(__name__)

NEGLIGIBLE_VAT = Decimal("0.01")

PURCHASE_ACCOUNT_TYPES = (AccountType.EXPENSE, AccountType.ASSET)
SALES_ACCOUNT_TYPES = (AccountType.REVENUE,)


@dataclass(frozen=True)
class VatSplit:
    gross: Decimal
    net: Decimal
    vat: Decimal

    @property
    def has_vat_line(self) -> bool:
        return self.vat > NEGLIGIBLE_VAT


def split_vat(gross: Decimal, vat_rate: Decimal | None) -> VatSplit:
    """Split a gross amount into net and VAT.

    A VAT amount of one cent or less is treated as 0% VAT: the whole gross
    amount becomes net.
    """
    gross = to_cents(gross)
    if not vat_rate:
        return VatSplit(gross=gross, net=gross, vat=Decimal("0.00"))

    net = to_cents(gross / (Decimal("1") + vat_rate / Decimal("100")))
    vat = gross - net
    if vat <= NEGLIGIBLE_VAT:
        return VatSplit(gross=gross, net=gross, vat=Decimal("0.00"))
    return VatSplit(gross=gross, net=net, vat=vat)


async def book_invoice(db: AsyncSession, invoice: Invoice, account_id: UUID) -> JournalEntry:
    """
    Post an invoice to the ledger.

    Purchase: debit expense (net), debit VAT receivable (VAT), credit creditors (gross).
    Sales: debit debtors (gross), credit revenue (net), credit VAT payable (VAT).

    Raises:
        PostingError: invoice already booked, unusable account or non-positive total
        MissingAccountError: a creditor, debtor or VAT account is missing
    """
    if invoice.journal_entry_id is not None:
        raise PostingError(f"Invoice {invoice.invoice_number} is already booked")
    if invoice.total_amount <= 0:
        raise PostingError(f"Invoice {invoice.invoice_number} has no positive total")

    account = await get_active_account(db, account_id)
    if account is None:
        raise PostingError(f"Ledger account {account_id} not found or inactive")
    if is_blacklisted_code(account.code):
        raise PostingError(f"Ledger account {account.code} cannot be used for invoice bookings")

    allowed = PURCHASE_ACCOUNT_TYPES if invoice.invoice_type == InvoiceType.PURCHASE else SALES_ACCOUNT_TYPES
    if account.type not in allowed:
        raise PostingError(
            f"Account {account.code} ({account.type.value}) cannot be used for a "
            f"{invoice.invoice_type.value} invoice"
        )

    vat_rate = invoice.vat_rate if invoice.vat_rate is not None else account.vat_rate
    split = split_vat(invoice.total_amount, vat_rate)
    label = f"Invoice {invoice.invoice_number}"

    if invoice.invoice_type == InvoiceType.PURCHASE:
        creditors = await find_system_account(db, SystemAccountRole.ACCOUNTS_PAYABLE)
        lines = [LineSpec(account.id, Direction.DEBIT, split.net, account.name)]
        if split.has_vat_line:
            vat_account = await find_system_account(db, SystemAccountRole.VAT_RECEIVABLE)
            lines.append(LineSpec(vat_account.id, Direction.DEBIT, split.vat, "BTW"))
        lines.append(LineSpec(creditors.id, Direction.CREDIT, split.gross, label))
        entry_type = JournalEntryType.PURCHASE
    else:
        debtors = await find_system_account(db, SystemAccountRole.ACCOUNTS_RECEIVABLE)
        lines = [
            LineSpec(debtors.id, Direction.DEBIT, split.gross, label),
            LineSpec(account.id, Direction.CREDIT, split.net, account.name),
        ]
        if split.has_vat_line:
            vat_account = await find_system_account(db, SystemAccountRole.VAT_PAYABLE)
            lines.append(LineSpec(vat_account.id, Direction.CREDIT, split.vat, "BTW"))
        entry_type = JournalEntryType.SALES

    entry = build_journal_entry(
        entry_date=invoice.invoice_date,
        memo=label,
        lines=lines,
        entry_type=entry_type,
        source_type=JournalEntrySourceType.INVOICE,
        source_id=invoice.id,
        contact_id=invoice.contact_id,
        reference=invoice.invoice_number,
    )
    await persist_journal_entries(db, [entry])

    invoice.net_amount = split.net
    invoice.vat_amount = split.vat
    invoice.journal_entry_id = entry.id
    await db.flush()

    logger.info(
        "Invoice booked",
        invoice=invoice.invoice_number,
        gross=str(split.gross),
        net=str(split.net),
        vat=str(split.vat),
    )
    return entry
