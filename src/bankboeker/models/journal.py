"""Journal entry models for double-entry bookkeeping."""

from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    DECIMAL,
    CheckConstraint,
    Date,
    Enum,
    ForeignKey,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bankboeker.database import Base
from bankboeker.models.base import TimestampMixin, UUIDMixin, enum_values

if TYPE_CHECKING:
    from bankboeker.models.account import Account


class JournalEntryStatus(str, enum.Enum):
    """Lifecycle of an entry. Bookings are written as posted."""

    DRAFT = "draft"
    POSTED = "posted"
    RECONCILED = "reconciled"
    VOID = "void"


class JournalEntryType(str, enum.Enum):
    """Journal (dagboek) the entry belongs to."""

    BANK = "bank"
    PURCHASE = "purchase"
    SALES = "sales"
    SETTLEMENT = "settlement"
    MEMORIAL = "memorial"


class JournalEntrySourceType(str, enum.Enum):
    """What produced the entry."""

    MANUAL = "manual"
    BANK_TRANSACTION = "bank_transaction"
    INVOICE = "invoice"
    SYSTEM = "system"


class Direction(str, enum.Enum):
    """Debit or credit direction."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class JournalEntry(Base, UUIDMixin, TimestampMixin):
    """Header of one booking in a dagboek (bank, purchase, sales, settlement or memorial).

    Entries are written posted and balanced; a bank transaction in relation
    mode produces two of them.
    """

    __tablename__ = "journal_entries"

    entry_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    memo: Mapped[str] = mapped_column(String(500), nullable=False)
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    entry_type: Mapped[JournalEntryType] = mapped_column(
        Enum(JournalEntryType, name="journal_entry_type_enum", values_callable=enum_values),
        nullable=False,
        default=JournalEntryType.MEMORIAL,
    )
    source_type: Mapped[JournalEntrySourceType] = mapped_column(
        Enum(
            JournalEntrySourceType,
            name="journal_source_type_enum",
            values_callable=enum_values,
        ),
        nullable=False,
        default=JournalEntrySourceType.MANUAL,
    )
    source_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    status: Mapped[JournalEntryStatus] = mapped_column(
        Enum(
            JournalEntryStatus,
            name="journal_entry_status_enum",
            values_callable=enum_values,
        ),
        nullable=False,
        default=JournalEntryStatus.DRAFT,
        index=True,
    )
    contact_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("contacts.id"), nullable=True
    )

    lines: Mapped[list[JournalLine]] = relationship(
        "JournalLine", back_populates="journal_entry", cascade="all, delete-orphan"
    )


class JournalLine(Base, UUIDMixin, TimestampMixin):
    """One debit or credit line. Amounts are positive; ``direction`` carries the sign."""

    __tablename__ = "journal_lines"
    __table_args__ = (CheckConstraint("amount > 0", name="positive_amount"),)

    journal_entry_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("journal_entries.id"), nullable=False, index=True
    )
    account_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("accounts.id"), nullable=False, index=True
    )
    direction: Mapped[Direction] = mapped_column(
        Enum(
            Direction,
            name="journal_line_direction_enum",
            values_callable=enum_values,
        ),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    journal_entry: Mapped[JournalEntry] = relationship("JournalEntry", back_populates="lines")
    account: Mapped[Account] = relationship("Account", back_populates="journal_lines")
