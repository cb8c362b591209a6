"""Pydantic schemas for matching outcomes and enrichment results."""

import enum
from uuid import UUID

from pydantic import BaseModel, Field

CERTAIN = 100


class MatchSource(str, enum.Enum):
    """Pipeline stage that produced an outcome."""

    INVOICE = "invoice"
    RULE = "rule"
    CRM = "crm"
    VENDOR_DEFAULT = "vendor_default"
    EXTERNAL_ENRICHMENT = "external_enrichment"
    MANUAL = "manual"
    NONE = "none"


class BookingMode(str, enum.Enum):
    """Direct posting to an account, or suspense posting linked to a relation."""

    DIRECT = "direct"
    RELATION = "relation"


class BookingSuggestion(BaseModel):
    """What the poster should book."""

    mode: BookingMode
    account_id: UUID | None = None
    contact_id: UUID | None = None
    invoice_id: UUID | None = None
    description: str = ""

    @property
    def is_postable(self) -> bool:
        """An account is always needed; relation mode also needs a contact."""
        if self.account_id is None:
            return False
        if self.mode == BookingMode.RELATION and self.contact_id is None:
            return False
        return True


class ConfidenceOutcome(BaseModel):
    """Decision of the matching pipeline for one transaction."""

    score: int = Field(ge=0, le=100)
    reason: str
    source: MatchSource
    suggestion: BookingSuggestion | None = None

    @classmethod
    def no_match(cls, reason: str = "No match found, manual review required") -> "ConfidenceOutcome":
        return cls(score=0, reason=reason, source=MatchSource.NONE)

    def is_actionable(self, threshold: int) -> bool:
        return self.score >= threshold and self.suggestion is not None and self.suggestion.is_postable


class EnrichmentResult(BaseModel):
    """Account chosen by the detective/accountant enrichment stages."""

    account_id: UUID
    account_code: str
    account_name: str
    confidence: int = Field(ge=0, le=100)
    reason: str
    industry: str | None = None
    contact_id: UUID | None = None
