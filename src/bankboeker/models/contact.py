"""Relation (contact) model for suppliers and customers."""

from __future__ import annotations

import enum
from uuid import UUID

from sqlalchemy import Boolean, Enum, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bankboeker.database import Base
from bankboeker.models.account import Account
from bankboeker.models.base import TimestampMixin, UUIDMixin, enum_values


class RelationType(str, enum.Enum):
    """Role of a bookkeeping relation."""

    SUPPLIER = "supplier"
    CUSTOMER = "customer"
    BOTH = "both"


class Contact(Base, UUIDMixin, TimestampMixin):
    """
    Counterparty known to the administration.

    The default ledger account is a shortcut set by a user or learned from
    earlier bookings; the matching pipeline books straight to it.
    """

    __tablename__ = "contacts"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    relation_type: Mapped[RelationType] = mapped_column(
        Enum(RelationType, name="relation_type_enum", values_callable=enum_values),
        nullable=False,
        default=RelationType.SUPPLIER,
    )
    iban: Mapped[str | None] = mapped_column(String(34), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    default_ledger_account_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("accounts.id"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    default_ledger_account: Mapped[Account | None] = relationship("Account")

    def __repr__(self) -> str:
        return f"<Contact {self.name} ({self.relation_type.value})>"
