"""Unit tests for raiffcli.transfer.executor."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from raiffcli.exceptions import BatchExecutionError, ElementPresenceTimeout
from raiffcli.models.execution import BatchState, TransactionState
from raiffcli.models.transaction import AccountClass, Batch, BatchKey, OperationKind
from raiffcli.transfer.executor import BatchExecutor
from raiffcli.transfer.forms import TransferForm

KEY = BatchKey(operation=OperationKind.DOMESTIC, account_class=AccountClass.INDIVIDUAL)


class RecordingForm(TransferForm):
    """Form strategy that records each step and can fail on a chosen one."""

    operation = OperationKind.DOMESTIC

    def __init__(self, store=None, fail_at: tuple[str, int] | None = None) -> None:
        super().__init__(AccountClass.INDIVIDUAL)
        self.calls: list[str] = []
        self.store = store
        self.fail_at = fail_at
        self.queued_at_open: list[int] = []
        self._counts: dict[str, int] = {}

    def _step(self, name: str) -> None:
        self._counts[name] = self._counts.get(name, 0) + 1
        self.calls.append(name)
        if self.fail_at == (name, self._counts[name]):
            raise ElementPresenceTimeout("element .status-container .text-success to be present", 20.0)

    def prepare(self, ui) -> None:
        self._step("prepare")

    def open(self, ui) -> None:
        if self.store is not None:
            self.queued_at_open.append(len(self.store.load(KEY)))
        self._step("open")

    def select_account(self, ui, account: str) -> None:
        self._step(f"select_account:{account}")

    def fill(self, ui, transaction) -> None:
        self._step(f"fill:{transaction.description}")

    def submit(self, ui) -> None:
        self._step("submit")

    def await_confirmation(self, ui) -> None:
        self._step("await_confirmation")


@pytest.fixture()
def ui() -> MagicMock:
    return MagicMock(name="RemoteUI")


def _executor(ui, store, form, **kwargs) -> BatchExecutor:
    return BatchExecutor(ui, store, form, base_url="https://bank.example/", username="jane", password="pw", **kwargs)


class TestRun:
    """Tests for running a batch to completion."""

    def test_single_transaction_drains_queue(self, ui, queue_store, make_transaction) -> None:
        """A confirmed transaction drains the queue after each form step ran once."""
        form = RecordingForm(queue_store)
        batch = Batch(transactions=[make_transaction()])

        result = _executor(ui, queue_store, form).run(KEY, batch, "1234567890 BGN")

        assert result.state is BatchState.DRAINED
        assert result.drained
        assert result.completed_at is not None
        assert result.confirmed == batch.transactions
        assert queue_store.load(KEY).is_empty
        assert form.calls == [
            "prepare",
            "open",
            "select_account:1234567890 BGN",
            "fill:rent",
            "submit",
            "await_confirmation",
        ]

    def test_batch_persisted_before_first_remote_action(self, ui, queue_store, make_transaction) -> None:
        """The queue holds every unconfirmed transaction when a form opens."""
        form = RecordingForm(queue_store)
        batch = Batch(transactions=[make_transaction(description="a"), make_transaction(description="b")])

        _executor(ui, queue_store, form).run(KEY, batch, "acc")

        assert form.queued_at_open == [2, 1]

    def test_logs_in_once_per_executor(self, ui, queue_store, make_transaction) -> None:
        """Login, account class selection and form preparation happen once per batch."""
        form = RecordingForm()
        executor = _executor(ui, queue_store, form)
        batch = Batch(transactions=[make_transaction(description="a"), make_transaction(description="b")])

        executor.run(KEY, batch, "acc")

        ui.log_in.assert_called_once_with("https://bank.example/", "jane", "pw")
        ui.select_account_class.assert_called_once_with(AccountClass.INDIVIDUAL)
        assert form.calls.count("prepare") == 1
        assert form.calls.count("open") == 2

    def test_on_confirmed_called_per_transaction(self, ui, queue_store, make_transaction) -> None:
        """The callback sees each confirmed transaction in order."""
        seen = []
        batch = Batch(transactions=[make_transaction(description="a"), make_transaction(description="b")])

        _executor(ui, queue_store, RecordingForm(), on_confirmed=seen.append).run(KEY, batch, "acc")

        assert [o.transaction.description for o in seen] == ["a", "b"]
        assert all(o.state is TransactionState.CONFIRMED for o in seen)

    def test_operation_mismatch(self, ui, queue_store, make_transaction) -> None:
        """A batch key for another operation is refused before anything is queued."""
        foreign = BatchKey(operation=OperationKind.FOREIGN, account_class=AccountClass.INDIVIDUAL)
        with pytest.raises(ValueError):
            _executor(ui, queue_store, RecordingForm()).run(foreign, Batch(transactions=[make_transaction()]), "acc")
        assert queue_store.load(foreign).is_empty


class TestFailure:
    """Tests for failures part-way through a batch."""

    def test_failure_stops_batch_and_keeps_unconfirmed(self, ui, queue_store, make_transaction) -> None:
        """A failed transaction stops the batch and stays queued with the rest."""
        first = make_transaction(description="first")
        second = make_transaction(description="second")
        third = make_transaction(description="third")
        form = RecordingForm(fail_at=("await_confirmation", 2))

        with pytest.raises(BatchExecutionError) as exc_info:
            _executor(ui, queue_store, form).run(KEY, Batch(transactions=[first, second, third]), "acc")

        err = exc_info.value
        assert err.index == 1
        assert err.transaction == second
        assert err.operation == "transfer-domestic"
        assert isinstance(err.cause, ElementPresenceTimeout)
        assert "fill:third" not in form.calls
        assert queue_store.load(KEY).transactions == [second, third]

    def test_partial_result_attached(self, ui, queue_store, make_transaction) -> None:
        """The error carries the interrupted result with the failed outcome."""
        form = RecordingForm(fail_at=("submit", 1))
        with pytest.raises(BatchExecutionError) as exc_info:
            _executor(ui, queue_store, form).run(KEY, Batch(transactions=[make_transaction()]), "acc")

        result = exc_info.value.result
        assert result.state is BatchState.INTERRUPTED
        assert result.completed_at is not None
        outcome = result.outcomes[0]
        assert outcome.state is TransactionState.FAILED
        assert outcome.error.startswith("ElementPresenceTimeout")
        assert result.confirmed == []

    def test_login_failure_is_reported_against_first_transaction(self, ui, queue_store, make_transaction) -> None:
        """A login failure is reported against the first transaction."""
        ui.log_in.side_effect = ElementPresenceTimeout("element .profile-selection to be present", 20.0)
        batch = Batch(transactions=[make_transaction()])

        with pytest.raises(BatchExecutionError) as exc_info:
            _executor(ui, queue_store, RecordingForm()).run(KEY, batch, "acc")

        assert exc_info.value.index == 0
        assert queue_store.load(KEY) == batch
