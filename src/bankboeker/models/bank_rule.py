"""Bank rule model: keyword to account/contact mappings."""

from __future__ import annotations

import enum
from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from bankboeker.database import Base
from bankboeker.models.base import TimestampMixin, UUIDMixin, enum_values


class RuleMatchType(str, enum.Enum):
    """How a rule keyword is compared against the cleaned counterparty text."""

    CONTAINS = "contains"
    EXACT = "exact"


class BankRule(Base, UUIDMixin, TimestampMixin):
    """
    User-authored or learned matching rule.

    Rules are evaluated by descending priority and the first match wins.
    System-seeded rules are protected from deletion unless forced.
    """

    __tablename__ = "bank_rules"

    keyword: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    match_type: Mapped[RuleMatchType] = mapped_column(
        Enum(RuleMatchType, name="rule_match_type_enum", values_callable=enum_values),
        nullable=False,
        default=RuleMatchType.CONTAINS,
    )
    target_account_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("accounts.id"), nullable=True
    )
    contact_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("contacts.id"), nullable=True
    )
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    use_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_used: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return f"<BankRule {self.keyword!r} ({self.match_type.value}, priority={self.priority})>"
