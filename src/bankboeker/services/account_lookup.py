"""Account lookups: blacklist, booking targets and system accounts.

System accounts (bank, suspense, creditors, debtors, VAT) are located by
role rather than hardcoded ids. Each role is searched by code first, then by
name keywords, and always constrained to the expected account type so a
wrong kind of account is never substituted.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from bankboeker.logger import get_logger
from bankboeker.models import Account, AccountType
from bankboeker.services.accounting import MissingAccountError

logger = get_logger(__name__)

# Depreciation (4200-4299) and internal allocations (4900-4999)
BLACKLISTED_CODE_RANGES: tuple[tuple[int, int], ...] = ((4200, 4299), (4900, 4999))


def is_blacklisted_code(code: str | None) -> bool:
    """True if the account code may never be suggested for a bank transaction or invoice."""
    if not code or not code.strip().isdigit():
        return False
    value = int(code.strip())
    return any(low <= value <= high for low, high in BLACKLISTED_CODE_RANGES)


class SystemAccountRole(str, enum.Enum):
    BANK = "bank"
    ACCOUNTS_RECEIVABLE = "accounts_receivable"
    RECEIVABLES_SUSPENSE = "receivables_suspense"
    VAT_RECEIVABLE = "vat_receivable"
    VAT_PAYABLE = "vat_payable"
    ACCOUNTS_PAYABLE = "accounts_payable"
    PAYABLES_SUSPENSE = "payables_suspense"


@dataclass(frozen=True)
class SystemAccountSpec:
    label: str
    account_type: AccountType
    codes: tuple[str, ...]
    name_keywords: tuple[str, ...]
    generic_fallback: bool = False


SYSTEM_ACCOUNTS: dict[SystemAccountRole, SystemAccountSpec] = {
    SystemAccountRole.BANK: SystemAccountSpec(
        label="Bank",
        account_type=AccountType.ASSET,
        codes=("1100",),
        name_keywords=("bank",),
    ),
    SystemAccountRole.ACCOUNTS_RECEIVABLE: SystemAccountSpec(
        label="Debiteuren",
        account_type=AccountType.ASSET,
        codes=("1300",),
        name_keywords=("debiteur", "accounts receivable"),
    ),
    SystemAccountRole.RECEIVABLES_SUSPENSE: SystemAccountSpec(
        label="Tussenrekening ontvangsten",
        account_type=AccountType.ASSET,
        codes=("1310",),
        name_keywords=("tussenrekening ontvangst", "vooruitontvangen"),
    ),
    SystemAccountRole.VAT_RECEIVABLE: SystemAccountSpec(
        label="Te vorderen BTW",
        account_type=AccountType.ASSET,
        codes=("1450",),
        name_keywords=("te vorderen btw", "voorbelasting"),
    ),
    SystemAccountRole.VAT_PAYABLE: SystemAccountSpec(
        label="Af te dragen BTW",
        account_type=AccountType.LIABILITY,
        codes=("1530", "1540"),
        name_keywords=("af te dragen btw", "btw hoog", "btw laag"),
    ),
    SystemAccountRole.ACCOUNTS_PAYABLE: SystemAccountSpec(
        label="Crediteuren",
        account_type=AccountType.LIABILITY,
        codes=("1600", "1500"),
        name_keywords=("crediteur", "accounts payable", "te betalen", "leveranciers"),
        generic_fallback=True,
    ),
    SystemAccountRole.PAYABLES_SUSPENSE: SystemAccountSpec(
        label="Nog te ontvangen inkoopfacturen",
        account_type=AccountType.LIABILITY,
        codes=("2300",),
        name_keywords=("nog te ontvangen", "tussenrekening"),
    ),
}


async def find_system_account(db: AsyncSession, role: SystemAccountRole) -> Account:
    """Locate the active account fulfilling ``role``.

    Raises:
        MissingAccountError: naming the role when nothing suitable exists
    """
    spec = SYSTEM_ACCOUNTS[role]
    base = (
        select(Account)
        .where(Account.type == spec.account_type)
        .where(Account.is_active == True)  # noqa: E712
    )

    for code in spec.codes:
        result = await db.execute(base.where(Account.code == code))
        account = result.scalar_one_or_none()
        if account is not None:
            return account

    name_filters = [Account.name.ilike(f"%{keyword}%") for keyword in spec.name_keywords]
    result = await db.execute(base.where(or_(*name_filters)).order_by(Account.code).limit(1))
    account = result.scalar_one_or_none()
    if account is not None:
        logger.info("System account found by name", role=role.value, code=account.code)
        return account

    if spec.generic_fallback:
        result = await db.execute(
            base.where(Account.tax_category.is_(None)).order_by(Account.code).limit(1)
        )
        account = result.scalar_one_or_none()
        if account is not None:
            logger.warning(
                "System account resolved via generic fallback",
                role=role.value,
                code=account.code,
            )
            return account

    raise MissingAccountError(
        spec.label,
        f"create an active {spec.account_type.value.lower()} account "
        f"(code {' or '.join(spec.codes)})",
    )


async def get_active_account(db: AsyncSession, account_id: UUID) -> Account | None:
    result = await db.execute(
        select(Account).where(Account.id == account_id).where(Account.is_active == True)  # noqa: E712
    )
    return result.scalar_one_or_none()


async def get_bookable_account_by_code(db: AsyncSession, code: str) -> Account | None:
    """Active account with ``code``, never a blacklisted one."""
    if is_blacklisted_code(code):
        return None
    result = await db.execute(
        select(Account).where(Account.code == code).where(Account.is_active == True)  # noqa: E712
    )
    return result.scalar_one_or_none()
