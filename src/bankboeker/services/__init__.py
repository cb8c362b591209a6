"""Services package."""

from bankboeker.services.accounting import (
    AccountingError,
    JournalImbalanceError,
    MissingAccountError,
    PostingError,
    ValidationError,
    validate_journal_balance,
)
from bankboeker.services.bank_automation import BankAutomationService, build_automation_service
from bankboeker.services.enrichment import EnrichmentService
from bankboeker.services.invoice_booking import book_invoice, split_vat
from bankboeker.services.learning import learn
from bankboeker.services.matching_pipeline import MatchingPipeline
from bankboeker.services.posting import PostingReceipt, post_transaction, settle_transaction
from bankboeker.services.rule_store import RuleNotFoundError, RuleProtectedError, RuleStore

__all__ = [
    "AccountingError",
    "BankAutomationService",
    "EnrichmentService",
    "JournalImbalanceError",
    "MatchingPipeline",
    "MissingAccountError",
    "PostingError",
    "PostingReceipt",
    "RuleNotFoundError",
    "RuleProtectedError",
    "RuleStore",
    "ValidationError",
    "book_invoice",
    "build_automation_service",
    "learn",
    "post_transaction",
    "settle_transaction",
    "split_vat",
    "validate_journal_balance",
]
