"""Bank transaction model."""

from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    DECIMAL,
    JSON,
    Boolean,
    Date,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from bankboeker.database import Base
from bankboeker.models.base import TimestampMixin, UUIDMixin, enum_values


class BankTransactionStatus(str, enum.Enum):
    """Lifecycle: unmatched -> matched/booked/pending -> reconciled."""

    UNMATCHED = "unmatched"
    MATCHED = "matched"
    BOOKED = "booked"
    PENDING = "pending"
    RECONCILED = "reconciled"


class BankTransaction(Base, UUIDMixin, TimestampMixin):
    """
    Imported bank movement.

    Amount is signed: negative for money out, positive for money in.
    Only posting, settlement and suggestion attachment mutate a row.
    """

    __tablename__ = "bank_transactions"

    transaction_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    contra_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contra_iban: Mapped[str | None] = mapped_column(String(34), nullable=True)
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[BankTransactionStatus] = mapped_column(
        Enum(
            BankTransactionStatus,
            name="bank_transaction_status_enum",
            values_callable=enum_values,
        ),
        nullable=False,
        default=BankTransactionStatus.UNMATCHED,
        index=True,
    )
    journal_entry_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("journal_entries.id"), nullable=True
    )
    matched_invoice_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("invoices.id"), nullable=True, index=True
    )
    contact_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("contacts.id"), nullable=True
    )
    auto_booked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    confidence_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    ai_suggestion: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    @property
    def is_outgoing(self) -> bool:
        return self.amount < 0

    def __repr__(self) -> str:
        return f"<BankTransaction {self.transaction_date} {self.amount} {self.status.value}>"
