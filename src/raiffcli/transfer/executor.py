"""Batch executor — drives a batch of transfers through the remote UI.

Ordering is what makes a run crash-safe:

1. The whole batch is saved to the queue store before any remote action.
2. Each transaction walks ``staged -> account_selected -> form_filled ->
   submitted -> confirmed``.
3. Only once the remote UI has confirmed a transaction is it removed
   from the store.

The first failure stops the run. Transactions not yet confirmed stay in
the store for the next invocation.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from raiffcli.exceptions import BatchExecutionError
from raiffcli.models.execution import BatchRunResult, BatchState, TransactionOutcome, TransactionState
from raiffcli.models.transaction import Batch, BatchKey
from raiffcli.store.queue_store import TransactionQueueStore
from raiffcli.transfer.forms import TransferForm
from raiffcli.ui.remote_ui import RemoteUI

logger = logging.getLogger(__name__)


class BatchExecutor:
    """Runs a batch against one remote session.

    Args:
        ui: Remote UI operations bound to the live session.
        store: The transaction queue store.
        form: Form strategy for the batch's operation kind.
        base_url: Login page of the remote UI.
        username: Login user name.
        password: Login password.
        on_confirmed: Called after each confirmed (and dequeued) transaction.
    """

    def __init__(
        self,
        ui: RemoteUI,
        store: TransactionQueueStore,
        form: TransferForm,
        *,
        base_url: str,
        username: str,
        password: str,
        on_confirmed: Callable[[TransactionOutcome], None] | None = None,
    ) -> None:
        self._ui = ui
        self._store = store
        self._form = form
        self._base_url = base_url
        self._username = username
        self._password = password
        self._on_confirmed = on_confirmed
        self._authenticated = False

    def run(self, key: BatchKey, batch: Batch, account: str) -> BatchRunResult:
        """Persist *batch* under *key*, then register each transaction.

        Args:
            key: Operation kind and account class of the batch.
            batch: The confirmed batch, including any resumed transactions.
            account: Sender account to choose in every form.

        Returns:
            A drained ``BatchRunResult``.

        Raises:
            BatchExecutionError: On the first transaction that fails. The
                partial result is attached.
        """
        if key.operation != self._form.operation:
            raise ValueError(f"Form for {self._form.operation.value} cannot run batch {key}")

        result = BatchRunResult(key=key, state=BatchState.COLLECTING)
        self._store.save(key, batch)
        result.state = BatchState.PERSISTED
        logger.info("Persisted %d transaction(s) for %s", len(batch), key)

        result.state = BatchState.EXECUTING
        for index, transaction in enumerate(batch.transactions):
            outcome = TransactionOutcome(index=index, transaction=transaction)
            result.outcomes.append(outcome)
            try:
                self._execute_one(key, outcome, account)
            except Exception as exc:
                outcome.error = f"{type(exc).__name__}: {exc}"
                logger.error(
                    "%s: transaction %d/%d failed in state %s: %s",
                    key,
                    index + 1,
                    len(batch),
                    outcome.state.value,
                    outcome.error,
                )
                outcome.state = TransactionState.FAILED
                result.state = BatchState.INTERRUPTED
                result.completed_at = datetime.now(timezone.utc)
                raise BatchExecutionError(key.operation.value, index, transaction, exc, result) from exc

        result.state = BatchState.DRAINED
        result.completed_at = datetime.now(timezone.utc)
        logger.info("%s drained: %d transaction(s) confirmed", key, len(result.confirmed))
        return result

    def _authenticate(self, key: BatchKey) -> None:
        if self._authenticated:
            return
        self._ui.log_in(self._base_url, self._username, self._password)
        self._ui.select_account_class(key.account_class)
        self._form.prepare(self._ui)
        self._authenticated = True

    def _execute_one(self, key: BatchKey, outcome: TransactionOutcome, account: str) -> None:
        transaction = outcome.transaction
        logger.info("%s: registering %s", key, transaction.summary())

        self._authenticate(key)
        self._form.open(self._ui)
        self._form.select_account(self._ui, account)
        outcome.state = TransactionState.ACCOUNT_SELECTED

        self._form.fill(self._ui, transaction)
        outcome.state = TransactionState.FORM_FILLED

        self._form.submit(self._ui)
        outcome.state = TransactionState.SUBMITTED

        self._form.await_confirmation(self._ui)
        outcome.state = TransactionState.CONFIRMED

        self._store.remove(key, transaction)
        logger.info("%s: confirmed %s", key, transaction.summary())
        if self._on_confirmed is not None:
            self._on_confirmed(outcome)
