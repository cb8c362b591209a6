"""Pydantic schemas package."""

from bankboeker.schemas.automation import (
    BatchItemDetail,
    BatchItemStatus,
    BatchReport,
    BatchRequest,
    ErrorCode,
    InvoiceBookingRequest,
    LearnResult,
    ManualBookingRequest,
    PostingResult,
    ResolveResult,
    ServiceResult,
    SettlementRequest,
    SettlementResult,
)
from bankboeker.schemas.base import BaseRecord, RecordDecodeError
from bankboeker.schemas.matching import (
    CERTAIN,
    BookingMode,
    BookingSuggestion,
    ConfidenceOutcome,
    EnrichmentResult,
    MatchSource,
)
from bankboeker.schemas.records import (
    AccountRecord,
    InvoiceRecord,
    RelationRecord,
    RuleRecord,
    TransactionRecord,
)

__all__ = [
    "CERTAIN",
    "AccountRecord",
    "BaseRecord",
    "BatchItemDetail",
    "BatchItemStatus",
    "BatchReport",
    "BatchRequest",
    "BookingMode",
    "BookingSuggestion",
    "ConfidenceOutcome",
    "EnrichmentResult",
    "ErrorCode",
    "InvoiceBookingRequest",
    "InvoiceRecord",
    "LearnResult",
    "ManualBookingRequest",
    "MatchSource",
    "PostingResult",
    "RecordDecodeError",
    "RelationRecord",
    "ResolveResult",
    "RuleRecord",
    "ServiceResult",
    "SettlementRequest",
    "SettlementResult",
    "TransactionRecord",
]
