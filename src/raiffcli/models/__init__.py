"""raiffcli data models."""

from raiffcli.models.execution import BatchRunResult, BatchState, TransactionOutcome, TransactionState
from raiffcli.models.transaction import (
    AccountClass,
    Batch,
    BatchKey,
    OperationKind,
    Recipient,
    TransactionRequest,
)

__all__ = [
    "AccountClass",
    "Batch",
    "BatchKey",
    "BatchRunResult",
    "BatchState",
    "OperationKind",
    "Recipient",
    "TransactionOutcome",
    "TransactionRequest",
    "TransactionState",
]
