"""Invoice model for purchase and sales invoices."""

from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import DECIMAL, Date, Enum, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bankboeker.database import Base
from bankboeker.models.base import TimestampMixin, UUIDMixin, enum_values
from bankboeker.models.contact import Contact


class InvoiceType(str, enum.Enum):
    PURCHASE = "purchase"
    SALES = "sales"


class InvoiceStatus(str, enum.Enum):
    """Lifecycle of an invoice.

    Sales invoices are ``sent`` until paid; purchase invoices are ``pending``
    or ``overdue`` until paid.
    """

    DRAFT = "draft"
    SENT = "sent"
    PENDING = "pending"
    OVERDUE = "overdue"
    PAID = "paid"


class Invoice(Base, UUIDMixin, TimestampMixin):
    """Purchase or sales invoice with gross total and optional VAT split."""

    __tablename__ = "invoices"

    invoice_type: Mapped[InvoiceType] = mapped_column(
        Enum(InvoiceType, name="invoice_type_enum", values_callable=enum_values),
        nullable=False,
        index=True,
    )
    invoice_number: Mapped[str] = mapped_column(String(100), nullable=False)
    contact_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("contacts.id"), nullable=False, index=True
    )
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    total_amount: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), nullable=False)
    vat_rate: Mapped[Decimal | None] = mapped_column(DECIMAL(5, 2), nullable=True)
    net_amount: Mapped[Decimal | None] = mapped_column(DECIMAL(18, 2), nullable=True)
    vat_amount: Mapped[Decimal | None] = mapped_column(DECIMAL(18, 2), nullable=True)
    status: Mapped[InvoiceStatus] = mapped_column(
        Enum(InvoiceStatus, name="invoice_status_enum", values_callable=enum_values),
        nullable=False,
        default=InvoiceStatus.DRAFT,
        index=True,
    )
    journal_entry_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("journal_entries.id"), nullable=True
    )

    contact: Mapped[Contact] = relationship("Contact")

    def __repr__(self) -> str:
        return f"<Invoice {self.invoice_number} {self.invoice_type.value} {self.total_amount}>"
