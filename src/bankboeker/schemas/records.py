"""Typed records for the entities the matching pipeline reads."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field

from bankboeker.models import (
    AccountType,
    BankTransactionStatus,
    InvoiceStatus,
    InvoiceType,
    RelationType,
    RuleMatchType,
)
from bankboeker.schemas.base import BaseRecord


class TransactionRecord(BaseRecord):
    id: UUID
    transaction_date: date
    amount: Decimal
    description: str = ""
    contra_name: str | None = None
    contra_iban: str | None = None
    status: BankTransactionStatus

    @property
    def is_outgoing(self) -> bool:
        return self.amount < 0

    @property
    def absolute_amount(self) -> Decimal:
        return abs(self.amount)


class AccountRecord(BaseRecord):
    id: UUID
    code: str = Field(min_length=1)
    name: str
    type: AccountType
    vat_rate: Decimal | None = None
    tax_category: str | None = None
    is_active: bool


class RelationRecord(BaseRecord):
    id: UUID
    name: str = Field(min_length=1)
    relation_type: RelationType
    iban: str | None = None
    city: str | None = None
    address: str | None = None
    default_ledger_account_id: UUID | None = None
    is_active: bool


class RuleRecord(BaseRecord):
    id: UUID
    keyword: str = Field(min_length=1)
    match_type: RuleMatchType
    target_account_id: UUID | None = None
    contact_id: UUID | None = None
    priority: int
    is_active: bool
    is_system: bool = False
    use_count: int = 0
    last_used: datetime | None = None


class InvoiceRecord(BaseRecord):
    id: UUID
    invoice_type: InvoiceType
    invoice_number: str
    contact_id: UUID
    invoice_date: date
    total_amount: Decimal
    vat_rate: Decimal | None = None
    status: InvoiceStatus
