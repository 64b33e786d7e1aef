"""Domain errors raised by the matching engine and its store."""

from uuid import UUID


class MatchingError(Exception):
    """Base exception for matching errors."""

    pass


class InvalidConfiguration(MatchingError):
    """Match configuration is outside the allowed ranges."""

    pass


class InvalidTransactionData(MatchingError):
    """A transaction reached the scorer with a malformed amount or date."""

    pass


class StoreUnavailable(MatchingError):
    """Transient failure reading or writing transactions."""

    pass


class StaleMatchTarget(MatchingError):
    """A transaction offered for matching is no longer pending."""

    def __init__(self, message: str, *, transaction_ids: list[UUID] | None = None) -> None:
        super().__init__(message)
        self.transaction_ids = transaction_ids or []


class PartialCommitInconsistency(MatchingError):
    """One side of a pairing was written and the compensating revert failed.

    The symmetry of ``matched_counterpart_id`` is broken for the listed rows
    until an operator repairs them.
    """

    def __init__(self, message: str, *, expense_id: UUID, sale_id: UUID) -> None:
        super().__init__(message)
        self.expense_id = expense_id
        self.sale_id = sale_id


class TransactionNotFound(MatchingError):
    """No transaction with the given id belongs to the owner."""

    pass
