"""Self-learning: turn a confirmed booking into a bank rule."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from bankboeker.logger import get_logger
from bankboeker.models import BankRule, BankTransaction
from bankboeker.schemas import BookingMode
from bankboeker.services.rule_store import RuleStore
from bankboeker.services.text_normalizer import clean

logger = get_logger(__name__)

MIN_PATTERN_LENGTH = 4


async def learn(
    db: AsyncSession,
    transaction: BankTransaction,
    mode: BookingMode,
    account_id: UUID,
    contact_id: UUID | None = None,
    rule_store: RuleStore | None = None,
) -> tuple[BankRule, bool] | None:
    """Upsert a rule keyed on the cleaned counterparty name of ``transaction``.

    The key is the same text the rule stage matches against, so store numbers
    and dates in the name do not stop the rule from firing next time. Names of
    three characters or fewer after cleaning are too ambiguous to learn from.
    The contact is only stored for relation-mode bookings.
    """
    pattern = clean(transaction.contra_name)
    if len(pattern) < MIN_PATTERN_LENGTH:
        logger.debug("Counterparty name too short to learn", transaction_id=str(transaction.id))
        return None

    store = rule_store or RuleStore()
    rule_contact = contact_id if mode == BookingMode.RELATION else None
    return await store.upsert_rule(db, pattern, account_id, rule_contact)
