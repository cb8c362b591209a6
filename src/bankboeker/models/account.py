"""Account model for the Dutch chart of accounts."""

from __future__ import annotations

import enum
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DECIMAL, Boolean, Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bankboeker.database import Base
from bankboeker.models.base import TimestampMixin, UUIDMixin, enum_values

if TYPE_CHECKING:
    from bankboeker.models.journal import JournalLine


class AccountType(str, enum.Enum):
    """Account type classification."""

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"


class Account(Base, UUIDMixin, TimestampMixin):
    """
    Ledger account in the chart of accounts (RGS style numbering).

    Codes in 4200-4299 (depreciation) and 4900-4999 (internal allocations)
    are never offered as a booking target for bank transactions or invoices.
    """

    __tablename__ = "accounts"

    code: Mapped[str] = mapped_column(String(10), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[AccountType] = mapped_column(
        Enum(AccountType, name="account_type_enum", values_callable=enum_values),
        nullable=False,
    )
    vat_rate: Mapped[Decimal | None] = mapped_column(DECIMAL(5, 2), nullable=True)
    tax_category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    journal_lines: Mapped[list[JournalLine]] = relationship("JournalLine", back_populates="account")

    def __repr__(self) -> str:
        return f"<Account {self.code} {self.name} ({self.type.value})>"
