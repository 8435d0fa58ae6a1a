"""State and result models for batch execution runs."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from raiffcli.models.transaction import BatchKey, TransactionRequest


class TransactionState(str, Enum):
    """Progress of one transaction through the remote form."""

    STAGED = "staged"
    ACCOUNT_SELECTED = "account_selected"
    FORM_FILLED = "form_filled"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class BatchState(str, Enum):
    """Progress of a batch run."""

    COLLECTING = "collecting"
    PERSISTED = "persisted"
    EXECUTING = "executing"
    DRAINED = "drained"
    INTERRUPTED = "interrupted"


class TransactionOutcome(BaseModel):
    """What happened to a single transaction during a run."""

    index: int
    transaction: TransactionRequest
    state: TransactionState = TransactionState.STAGED
    error: str = ""


class BatchRunResult(BaseModel):
    """Structured outcome of one batch run."""

    key: BatchKey
    state: BatchState = BatchState.PERSISTED
    outcomes: list[TransactionOutcome] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None

    @property
    def confirmed(self) -> list[TransactionRequest]:
        return [o.transaction for o in self.outcomes if o.state == TransactionState.CONFIRMED]

    @property
    def drained(self) -> bool:
        return self.state == BatchState.DRAINED
