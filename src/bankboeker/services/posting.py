"""Double-entry posting of bank transactions.

Direct mode books the transaction straight against the target account.
Relation mode routes it through a suspense account in two entries; a later
settlement clears the suspense account against creditors or debtors once the
invoice is confirmed.

Functions here raise ``AccountingError`` subclasses and only flush. The
caller owns the transaction boundary: commit on success, rollback on error.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bankboeker.logger import get_logger
from bankboeker.models import (
    Account,
    BankTransaction,
    BankTransactionStatus,
    Contact,
    Direction,
    Invoice,
    InvoiceStatus,
    InvoiceType,
    JournalEntry,
    JournalEntrySourceType,
    JournalEntryType,
)
from bankboeker.schemas import BookingMode, ConfidenceOutcome
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
)

logger = get_logger(__name__)


@dataclass
class PostingReceipt:
    transaction_id: UUID
    status: BankTransactionStatus
    journal_entry_ids: list[UUID] = field(default_factory=list)

    @property
    def journal_entry_id(self) -> UUID | None:
        return self.journal_entry_ids[0] if self.journal_entry_ids else None


async def _bookable_account(db: AsyncSession, account_id: UUID | None) -> Account:
    if account_id is None:
        raise PostingError("No ledger account selected")
    account = await get_active_account(db, account_id)
    if account is None:
        raise PostingError(f"Ledger account {account_id} not found or inactive")
    if is_blacklisted_code(account.code):
        raise PostingError(f"Ledger account {account.code} cannot be used for bank postings")
    return account


def _pair(debit: Account, credit: Account, amount: Decimal, description: str) -> list[LineSpec]:
    return [
        LineSpec(account_id=debit.id, direction=Direction.DEBIT, amount=amount, description=description),
        LineSpec(account_id=credit.id, direction=Direction.CREDIT, amount=amount, description=description),
    ]


def _memo(transaction: BankTransaction, suffix: str | None = None) -> str:
    base = transaction.contra_name or transaction.description or "Bank transaction"
    return f"{base} ({suffix})" if suffix else base


async def post_transaction(
    db: AsyncSession,
    transaction: BankTransaction,
    outcome: ConfidenceOutcome,
    *,
    auto_booked: bool = False,
) -> PostingReceipt:
    """
    Post a transaction according to the suggestion in ``outcome``.

    Raises:
        PostingError: if the transaction is not unmatched, or the suggestion
            lacks a usable account (or a contact in relation mode)
        MissingAccountError: if a required system account does not exist
        JournalImbalanceError: if a built entry does not balance
    """
    if transaction.status != BankTransactionStatus.UNMATCHED:
        raise PostingError(
            f"Transaction {transaction.id} is {transaction.status.value}, only unmatched transactions can be posted"
        )
    suggestion = outcome.suggestion
    if suggestion is None:
        raise PostingError("Outcome carries no booking suggestion")
    if transaction.amount == 0:
        raise PostingError("Cannot post a zero-amount transaction")

    target = await _bookable_account(db, suggestion.account_id)
    bank = await find_system_account(db, SystemAccountRole.BANK)
    amount = abs(transaction.amount)
    outgoing = transaction.is_outgoing

    if suggestion.mode == BookingMode.DIRECT:
        lines = _pair(target, bank, amount, target.name) if outgoing else _pair(bank, target, amount, target.name)
        entry = build_journal_entry(
            entry_date=transaction.transaction_date,
            memo=_memo(transaction),
            lines=lines,
            entry_type=JournalEntryType.BANK,
            source_type=JournalEntrySourceType.BANK_TRANSACTION,
            source_id=transaction.id,
            reference=transaction.reference,
        )
        await persist_journal_entries(db, [entry])
        entries = [entry]
        transaction.status = BankTransactionStatus.BOOKED
    else:
        if suggestion.contact_id is None:
            raise PostingError("Relation-mode posting requires a contact")
        contact = await db.get(Contact, suggestion.contact_id)
        if contact is None or not contact.is_active:
            raise PostingError(f"Contact {suggestion.contact_id} not found or inactive")

        entries = await _build_relation_entries(db, transaction, target, bank, contact)
        await persist_journal_entries(db, entries)
        transaction.status = BankTransactionStatus.PENDING
        transaction.contact_id = contact.id
        if suggestion.invoice_id is not None:
            transaction.matched_invoice_id = suggestion.invoice_id

    transaction.journal_entry_id = entries[0].id
    transaction.auto_booked = auto_booked
    transaction.confidence_score = outcome.score
    transaction.ai_suggestion = outcome.model_dump(mode="json")
    await db.flush()

    logger.info(
        "Transaction posted",
        transaction_id=str(transaction.id),
        mode=suggestion.mode.value,
        status=transaction.status.value,
        entries=len(entries),
        amount=str(amount),
    )
    return PostingReceipt(
        transaction_id=transaction.id,
        status=transaction.status,
        journal_entry_ids=[entry.id for entry in entries],
    )


async def _build_relation_entries(
    db: AsyncSession,
    transaction: BankTransaction,
    target: Account,
    bank: Account,
    contact: Contact,
) -> list[JournalEntry]:
    """Payment entry against suspense, then the cost or revenue entry out of it."""
    amount = abs(transaction.amount)
    if transaction.is_outgoing:
        suspense = await find_system_account(db, SystemAccountRole.PAYABLES_SUSPENSE)
        payment_lines = _pair(suspense, bank, amount, contact.name)
        booking_lines = _pair(target, suspense, amount, target.name)
        booking_type = JournalEntryType.PURCHASE
    else:
        suspense = await find_system_account(db, SystemAccountRole.RECEIVABLES_SUSPENSE)
        payment_lines = _pair(bank, suspense, amount, contact.name)
        booking_lines = _pair(suspense, target, amount, target.name)
        booking_type = JournalEntryType.SALES

    common = {
        "entry_date": transaction.transaction_date,
        "source_type": JournalEntrySourceType.BANK_TRANSACTION,
        "source_id": transaction.id,
        "contact_id": contact.id,
        "reference": transaction.reference,
    }
    payment = build_journal_entry(
        memo=_memo(transaction, "payment"),
        lines=payment_lines,
        entry_type=JournalEntryType.BANK,
        **common,
    )
    booking = build_journal_entry(
        memo=_memo(transaction, target.name),
        lines=booking_lines,
        entry_type=booking_type,
        **common,
    )
    return [payment, booking]


async def settle_transaction(
    db: AsyncSession, transaction: BankTransaction, invoice: Invoice
) -> JournalEntry:
    """
    Clear the suspense balance of a pending transaction against its invoice.

    Purchase: debit creditors, credit payables suspense.
    Sales: debit receivables suspense, credit debtors.
    """
    if transaction.status != BankTransactionStatus.PENDING:
        raise PostingError(
            f"Transaction {transaction.id} is {transaction.status.value}, only pending transactions can be settled"
        )
    if invoice.status == InvoiceStatus.PAID:
        raise PostingError(f"Invoice {invoice.invoice_number} is already paid")
    if transaction.contact_id != invoice.contact_id:
        raise PostingError("Invoice belongs to a different relation than the transaction")
    expected_type = InvoiceType.PURCHASE if transaction.is_outgoing else InvoiceType.SALES
    if invoice.invoice_type != expected_type:
        raise PostingError(
            f"A {invoice.invoice_type.value} invoice cannot settle an "
            f"{'outgoing' if transaction.is_outgoing else 'incoming'} payment"
        )
    if transaction.matched_invoice_id not in (None, invoice.id):
        raise PostingError("Transaction is already linked to another invoice")

    other = await db.scalar(
        select(BankTransaction.id)
        .where(BankTransaction.matched_invoice_id == invoice.id)
        .where(BankTransaction.id != transaction.id)
        .limit(1)
    )
    if other is not None:
        raise PostingError(f"Invoice {invoice.invoice_number} is already matched to another transaction")

    amount = abs(transaction.amount)
    if invoice.invoice_type == InvoiceType.PURCHASE:
        creditors = await find_system_account(db, SystemAccountRole.ACCOUNTS_PAYABLE)
        suspense = await find_system_account(db, SystemAccountRole.PAYABLES_SUSPENSE)
        lines = _pair(creditors, suspense, amount, f"Invoice {invoice.invoice_number}")
    else:
        suspense = await find_system_account(db, SystemAccountRole.RECEIVABLES_SUSPENSE)
        debtors = await find_system_account(db, SystemAccountRole.ACCOUNTS_RECEIVABLE)
        lines = _pair(suspense, debtors, amount, f"Invoice {invoice.invoice_number}")

    entry = build_journal_entry(
        entry_date=transaction.transaction_date,
        memo=f"Settlement invoice {invoice.invoice_number}",
        lines=lines,
        entry_type=JournalEntryType.SETTLEMENT,
        source_type=JournalEntrySourceType.BANK_TRANSACTION,
        source_id=transaction.id,
        contact_id=invoice.contact_id,
        reference=invoice.invoice_number,
    )
    await persist_journal_entries(db, [entry])

    transaction.status = BankTransactionStatus.RECONCILED
    transaction.matched_invoice_id = invoice.id
    invoice.status = InvoiceStatus.PAID
    await db.flush()

    logger.info(
        "Transaction settled",
        transaction_id=str(transaction.id),
        invoice=invoice.invoice_number,
        amount=str(amount),
    )
    return entry
