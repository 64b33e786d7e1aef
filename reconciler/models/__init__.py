"""SQLAlchemy models package."""

from reconciler.models.batch import BatchStatus, CsvBatch
from reconciler.models.match_settings import MatchSettings, MatchStrategy
from reconciler.models.transaction import (
    MODEL_BY_KIND,
    Expense,
    Sale,
    Transaction,
    TransactionKind,
    TransactionStatus,
)
from reconciler.models.user import User

__all__ = [
    "MODEL_BY_KIND",
    "BatchStatus",
    "CsvBatch",
    "Expense",
    "MatchSettings",
    "MatchStrategy",
    "Sale",
    "Transaction",
    "TransactionKind",
    "TransactionStatus",
    "User",
]
