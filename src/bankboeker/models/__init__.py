"""SQLAlchemy models package."""

from bankboeker.models.account import Account, AccountType
from bankboeker.models.bank_rule import BankRule, RuleMatchType
from bankboeker.models.bank_transaction import BankTransaction, BankTransactionStatus
from bankboeker.models.contact import Contact, RelationType
from bankboeker.models.invoice import Invoice, InvoiceStatus, InvoiceType
from bankboeker.models.journal import (
    Direction,
    JournalEntry,
    JournalEntrySourceType,
    JournalEntryStatus,
    JournalEntryType,
    JournalLine,
)

__all__ = [
    "Account",
    "AccountType",
    "BankRule",
    "BankTransaction",
    "BankTransactionStatus",
    "Contact",
    "Direction",
    "Invoice",
    "InvoiceStatus",
    "InvoiceType",
    "JournalEntry",
    "JournalEntrySourceType",
    "JournalEntryStatus",
    "JournalEntryType",
    "JournalLine",
    "RelationType",
    "RuleMatchType",
]
