"""Result and request schemas for the bank automation surface."""

import enum
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field

from bankboeker.schemas.matching import BookingMode, ConfidenceOutcome


class ErrorCode(str, enum.Enum):
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    INTERNAL = "internal"


class ServiceResult(BaseModel):
    """Success/error variant returned by every public entrypoint."""

    success: bool = True
    error: str | None = None
    error_code: ErrorCode | None = None


class ResolveResult(ServiceResult):
    transaction_id: UUID
    outcome: ConfidenceOutcome


class PostingResult(ServiceResult):
    journal_entry_id: UUID | None = None
    journal_entry_ids: list[UUID] = Field(default_factory=list)
    status: str | None = None


class LearnResult(ServiceResult):
    rule_id: UUID | None = None
    created: bool = False


class SettlementResult(ServiceResult):
    journal_entry_id: UUID | None = None


class BatchItemStatus(str, enum.Enum):
    AUTO_BOOKED = "auto_booked"
    NEEDS_REVIEW = "needs_review"
    SKIPPED = "skipped"
    ERROR = "error"


class BatchItemDetail(BaseModel):
    transaction_id: UUID
    status: BatchItemStatus
    mode: BookingMode | None = None
    confidence: int | None = None
    reason: str | None = None
    journal_entry_id: UUID | None = None
    error: str | None = None


class BatchReport(BaseModel):
    """Aggregated result of one batch run."""

    total_processed: int = 0
    auto_booked: int = 0
    auto_booked_direct: int = 0
    auto_booked_relation: int = 0
    needs_review: int = 0
    errors: int = 0
    skipped: int = 0
    details: list[BatchItemDetail] = Field(default_factory=list)


class ManualBookingRequest(BaseModel):
    mode: BookingMode = BookingMode.DIRECT
    account_id: UUID
    contact_id: UUID | None = None


class SettlementRequest(BaseModel):
    invoice_id: UUID


class InvoiceBookingRequest(BaseModel):
    account_id: UUID


class BatchRequest(BaseModel):
    transaction_ids: Annotated[list[UUID], Field(min_length=1)]
    concurrency_limit: Annotated[int | None, Field(ge=1, le=20)] = None
