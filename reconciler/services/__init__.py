"""Services package."""

from reconciler.services.auto_match import (
    AutoMatchSummary,
    ExpenseCandidates,
    MatchingContext,
    candidates_for_expense,
    confirm_match,
    ignore_transaction,
    open_matching_context,
    review_queue,
    run_auto_match,
)
from reconciler.services.errors import (
    InvalidConfiguration,
    InvalidTransactionData,
    MatchingError,
    PartialCommitInconsistency,
    StaleMatchTarget,
    StoreUnavailable,
    TransactionNotFound,
)
from reconciler.services.ingestion import IngestionError, ingest_csv_batch, parse_transactions_csv
from reconciler.services.match_settings import get_match_configuration, update_match_settings
from reconciler.services.matching import (
    AutoMatchResult,
    MatchCandidate,
    MatchConfiguration,
    calculate_match_score,
    rank_candidates,
    select_auto_matches,
)
from reconciler.services.stats import MatchStats, calculate_stats
from reconciler.services.transaction_store import TransactionStore

__all__ = [
    "AutoMatchResult",
    "AutoMatchSummary",
    "ExpenseCandidates",
    "IngestionError",
    "InvalidConfiguration",
    "InvalidTransactionData",
    "MatchCandidate",
    "MatchConfiguration",
    "MatchStats",
    "MatchingContext",
    "MatchingError",
    "PartialCommitInconsistency",
    "StaleMatchTarget",
    "StoreUnavailable",
    "TransactionNotFound",
    "TransactionStore",
    "calculate_match_score",
    "calculate_stats",
    "candidates_for_expense",
    "confirm_match",
    "get_match_configuration",
    "ignore_transaction",
    "ingest_csv_batch",
    "open_matching_context",
    "parse_transactions_csv",
    "rank_candidates",
    "review_queue",
    "run_auto_match",
    "select_auto_matches",
    "update_match_settings",
]
