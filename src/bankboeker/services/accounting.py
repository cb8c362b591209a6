"""Accounting service - Core double-entry bookkeeping logic."""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from bankboeker.logger import get_logger
from bankboeker.models import (
    Direction,
    JournalEntry,
    JournalEntrySourceType,
    JournalEntryStatus,
    JournalEntryType,
    JournalLine,
)

logger = get_logger(__name__)

BALANCE_TOLERANCE = Decimal("0.01")
CENT = Decimal("0.01")


class AccountingError(Exception):
    """Base exception for accounting errors."""

    pass


class ValidationError(AccountingError):
    """Validation error for accounting operations."""

    pass


class JournalImbalanceError(ValidationError):
    """Debits and credits of one journal entry differ by more than a cent."""

    def __init__(self, total_debit: Decimal, total_credit: Decimal):
        super().__init__(
            f"Journal entry not balanced: debit={total_debit}, credit={total_credit}"
        )
        self.total_debit = total_debit
        self.total_credit = total_credit


class MissingAccountError(AccountingError):
    """A required system account (bank, suspense, creditors, ...) does not exist."""

    def __init__(self, role: str, hint: str | None = None):
        message = f"No active ledger account found for role '{role}'"
        if hint:
            message = f"{message}: {hint}"
        super().__init__(message)
        self.role = role


class PostingError(AccountingError):
    """A posting precondition failed (status, account, contact)."""

    pass


@dataclass(frozen=True)
class LineSpec:
    """One side of a journal entry before it becomes a JournalLine."""

    account_id: UUID
    direction: Direction
    amount: Decimal
    description: str | None = None


def to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def validate_journal_balance(lines: list[JournalLine]) -> None:
    """
    Validate that journal entry lines are balanced (debit = credit).

    Args:
        lines: List of journal lines to validate

    Raises:
        ValidationError: If there are fewer than two lines or a non-positive amount
        JournalImbalanceError: If debits and credits don't balance
    """
    if len(lines) < 2:
        raise ValidationError("Journal entry must have at least 2 lines")

    if any(line.amount <= 0 for line in lines):
        raise ValidationError("Journal line amounts must be positive")

    total_debit = sum((line.amount for line in lines if line.direction == Direction.DEBIT), Decimal("0"))
    total_credit = sum((line.amount for line in lines if line.direction == Direction.CREDIT), Decimal("0"))

    if abs(total_debit - total_credit) > BALANCE_TOLERANCE:
        logger.error(
            "Journal entry not balanced",
            total_debit=str(total_debit),
            total_credit=str(total_credit),
        )
        raise JournalImbalanceError(total_debit, total_credit)


def build_journal_entry(
    *,
    entry_date: date,
    memo: str,
    lines: list[LineSpec],
    entry_type: JournalEntryType,
    source_type: JournalEntrySourceType,
    source_id: UUID | None = None,
    contact_id: UUID | None = None,
    reference: str | None = None,
) -> JournalEntry:
    """Build a posted journal entry with its lines (not yet added to a session)."""
    return JournalEntry(
        entry_date=entry_date,
        memo=memo[:500],
        reference=reference,
        entry_type=entry_type,
        source_type=source_type,
        source_id=source_id,
        contact_id=contact_id,
        status=JournalEntryStatus.POSTED,
        lines=[
            JournalLine(
                account_id=spec.account_id,
                direction=spec.direction,
                amount=to_cents(spec.amount),
                description=spec.description,
            )
            for spec in lines
        ],
    )


async def persist_journal_entries(db: AsyncSession, entries: list[JournalEntry]) -> list[JournalEntry]:
    """
    Validate every entry, then add all of them in one flush.

    Nothing is added to the session until every entry has passed validation,
    so an unbalanced entry never leaves sibling entries or lines behind.
    """
    for entry in entries:
        validate_journal_balance(entry.lines)

    db.add_all(entries)
    await db.flush()
    return entries
