"""Test data factories using factory_boy pattern.

Usage:
    # Simple creation
    contact = ContactFactory.build()

    # Create and flush to DB (transaction not committed)
    contact = await ContactFactory.create_async(db, name="Acme BV")
"""

from datetime import date
from decimal import Decimal
from typing import TypeVar
from uuid import uuid4

import factory
from sqlalchemy.ext.asyncio import AsyncSession

from bankboeker.models import (
    Account,
    AccountType,
    BankRule,
    BankTransaction,
    BankTransactionStatus,
    Contact,
    Invoice,
    InvoiceStatus,
    InvoiceType,
    RelationType,
    RuleMatchType,
)

T = TypeVar("T")


class AsyncFactoryMixin:
    """Mixin providing async database persistence for factories."""

    @classmethod
    async def create_async(cls, db: AsyncSession, **kwargs) -> T:
        """Create and flush to database (transaction not committed)."""
        instance = cls.build(**kwargs)
        db.add(instance)
        await db.flush()
        await db.refresh(instance)
        return instance


class AccountFactory(factory.Factory, AsyncFactoryMixin):
    class Meta:
        model = Account

    id = factory.LazyFunction(uuid4)
    code = factory.Sequence(lambda n: f"{7000 + n}")
    name = factory.Sequence(lambda n: f"Kostenrekening {n}")
    type = AccountType.EXPENSE
    tax_category = None
    is_active = True
    is_system = False


class ContactFactory(factory.Factory, AsyncFactoryMixin):
    class Meta:
        model = Contact

    id = factory.LazyFunction(uuid4)
    name = factory.Sequence(lambda n: f"Relatie {n} BV")
    relation_type = RelationType.SUPPLIER
    default_ledger_account_id = None
    is_active = True


class BankRuleFactory(factory.Factory, AsyncFactoryMixin):
    class Meta:
        model = BankRule

    id = factory.LazyFunction(uuid4)
    keyword = factory.Sequence(lambda n: f"keyword{n}")
    match_type = RuleMatchType.CONTAINS
    priority = 10
    is_active = True
    is_system = False
    use_count = 0


class BankTransactionFactory(factory.Factory, AsyncFactoryMixin):
    class Meta:
        model = BankTransaction

    id = factory.LazyFunction(uuid4)
    transaction_date = date(2024, 12, 24)
    amount = Decimal("-45.30")
    description = "BEA 12:00 24-12-2024 SHELL UTRECHT NR 12345 PAS 678"
    contra_name = None
    status = BankTransactionStatus.UNMATCHED
    auto_booked = False


class InvoiceFactory(factory.Factory, AsyncFactoryMixin):
    class Meta:
        model = Invoice

    id = factory.LazyFunction(uuid4)
    invoice_type = InvoiceType.PURCHASE
    invoice_number = factory.Sequence(lambda n: f"INV-{1000 + n}")
    invoice_date = date(2024, 12, 24)
    total_amount = Decimal("121.00")
    vat_rate = Decimal("21")
    status = InvoiceStatus.PENDING
