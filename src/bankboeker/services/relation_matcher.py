"""Match cleaned counterparty text against the relations in the CRM."""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bankboeker.logger import get_logger
from bankboeker.models import Contact
from bankboeker.schemas import EnrichmentResult, RelationRecord
from bankboeker.services.account_lookup import get_active_account, is_blacklisted_code
from bankboeker.services.enrichment import EnrichmentService
from bankboeker.services.text_normalizer import extract_city

logger = get_logger(__name__)


@dataclass(frozen=True)
class RelationMatch:
    relation: RelationRecord
    account_id: UUID | None
    enrichment: EnrichmentResult | None = None


def names_overlap(cleaned_text: str, relation_name: str) -> bool:
    """Case-insensitive containment in either direction."""
    text = cleaned_text.strip().lower()
    name = relation_name.strip().lower()
    if not text or not name:
        return False
    return name in text or text in name


async def get_active_relations(db: AsyncSession) -> list[RelationRecord]:
    result = await db.execute(
        select(Contact)
        .where(Contact.is_active == True)  # noqa: E712
        .order_by(Contact.created_at.asc())
    )
    return [RelationRecord.decode(contact) for contact in result.scalars().all()]


async def find_relation(
    db: AsyncSession,
    cleaned_text: str,
    enrichment: EnrichmentService | None,
    *,
    description: str | None = None,
    amount: Decimal | None = None,
) -> RelationMatch | None:
    """
    Find the first relation whose name overlaps ``cleaned_text``.

    The relation's default account is used when it is active and bookable;
    otherwise enrichment is asked for one. A failed enrichment still returns
    the relation with no account, which leaves the account for manual choice.
    """
    if not cleaned_text.strip():
        return None

    relation = next(
        (r for r in await get_active_relations(db) if names_overlap(cleaned_text, r.name)),
        None,
    )
    if relation is None:
        return None

    if relation.default_ledger_account_id is not None:
        account = await get_active_account(db, relation.default_ledger_account_id)
        if account is not None and not is_blacklisted_code(account.code):
            logger.info("Relation matched with default account", relation=relation.name, account=account.code)
            return RelationMatch(relation=relation, account_id=account.id)

    if enrichment is None:
        return RelationMatch(relation=relation, account_id=None)

    result = await enrichment.enrich(
        db,
        cleaned_text,
        city=relation.city or extract_city(description),
        address=relation.address,
        amount=abs(amount) if amount is not None else None,
    )
    if result is None:
        logger.info("Relation matched without account", relation=relation.name)
        return RelationMatch(relation=relation, account_id=None)

    logger.info(
        "Relation matched with enriched account",
        relation=relation.name,
        account=result.account_code,
        confidence=result.confidence,
    )
    return RelationMatch(relation=relation, account_id=result.account_id, enrichment=result)
