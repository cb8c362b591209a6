"""Bank rule store: priority-ordered keyword rules and their usage statistics."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bankboeker.logger import get_logger
from bankboeker.models import BankRule, RuleMatchType
from bankboeker.schemas import RuleRecord
from bankboeker.services.text_normalizer import matches_keyword

logger = get_logger(__name__)


class RuleStoreError(Exception):
    """Base exception for rule store errors."""


class RuleNotFoundError(RuleStoreError):
    pass


class RuleProtectedError(RuleStoreError):
    """System-seeded rules cannot be deleted without force."""


class RuleStore:
    """Service for reading, matching and learning bank rules."""

    async def get_active_rules(self, db: AsyncSession) -> list[RuleRecord]:
        """Fetch active rules, highest priority first (ties by creation order)."""
        query = (
            select(BankRule)
            .where(BankRule.is_active == True)  # noqa: E712
            .order_by(BankRule.priority.desc(), BankRule.created_at.asc())
        )
        result = await db.execute(query)
        return [RuleRecord.decode(rule) for rule in result.scalars().all()]

    @staticmethod
    def rule_matches(rule: RuleRecord, text: str) -> bool:
        """Check a single rule against cleaned counterparty text."""
        if not text:
            return False
        if rule.match_type == RuleMatchType.EXACT:
            return text.strip().lower() == rule.keyword.strip().lower()
        return matches_keyword(text, rule.keyword)

    async def find_matching_rule(self, db: AsyncSession, cleaned_text: str) -> RuleRecord | None:
        """Return the first active rule matching ``cleaned_text``.

        Evaluation stops at the first hit; lower-priority rules are never scored.
        """
        if not cleaned_text:
            return None
        for rule in await self.get_active_rules(db):
            if self.rule_matches(rule, cleaned_text):
                logger.info(
                    "Bank rule matched",
                    rule_id=str(rule.id),
                    keyword=rule.keyword,
                    priority=rule.priority,
                )
                return rule
        return None

    async def upsert_rule(
        self,
        db: AsyncSession,
        pattern: str,
        account_id: UUID | None,
        contact_id: UUID | None = None,
    ) -> tuple[BankRule, bool]:
        """Create or refresh the rule for ``pattern``.

        An existing learned rule is retargeted and reactivated. System rules keep
        their target and active flag; only their usage statistics change.

        Returns:
            The rule and whether it was newly created.
        """
        keyword = pattern.strip()
        if not keyword:
            raise ValueError("Rule pattern must not be empty")

        result = await db.execute(
            select(BankRule).where(func.lower(BankRule.keyword) == keyword.lower()).limit(1)
        )
        rule = result.scalar_one_or_none()
        now = datetime.now(UTC)

        if rule is not None:
            rule.use_count = (rule.use_count or 0) + 1
            rule.last_used = now
            if rule.is_system:
                await db.flush()
                logger.info("System rule kept", rule_id=str(rule.id), keyword=rule.keyword)
                return rule, False
            rule.target_account_id = account_id
            rule.contact_id = contact_id
            rule.is_active = True
            await db.flush()
            logger.info("Bank rule updated", rule_id=str(rule.id), use_count=rule.use_count)
            return rule, False

        max_priority = await db.scalar(select(func.max(BankRule.priority)))
        rule = BankRule(
            keyword=keyword,
            match_type=RuleMatchType.CONTAINS,
            target_account_id=account_id,
            contact_id=contact_id,
            priority=(max_priority or 0) + 1,
            is_active=True,
            is_system=False,
            use_count=1,
            last_used=now,
            description=f"Learned from booking of '{keyword}'",
        )
        db.add(rule)
        await db.flush()
        logger.info("Bank rule created", rule_id=str(rule.id), keyword=keyword, priority=rule.priority)
        return rule, True

    async def list_rules(self, db: AsyncSession, *, include_inactive: bool = False) -> list[BankRule]:
        query = select(BankRule).order_by(BankRule.priority.desc(), BankRule.created_at.asc())
        if not include_inactive:
            query = query.where(BankRule.is_active == True)  # noqa: E712
        result = await db.execute(query)
        return list(result.scalars().all())

    async def delete_rule(self, db: AsyncSession, rule_id: UUID, *, force: bool = False) -> None:
        rule = await db.get(BankRule, rule_id)
        if rule is None:
            raise RuleNotFoundError(f"Rule {rule_id} not found")
        if rule.is_system and not force:
            raise RuleProtectedError(f"Rule '{rule.keyword}' is a system rule and cannot be deleted")
        await db.delete(rule)
        await db.flush()
