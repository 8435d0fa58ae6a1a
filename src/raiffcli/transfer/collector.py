"""Interactive collection of a transaction batch.

The collector owns every operator-input rule: amount format, skipping,
the funds-origin declaration and the resume offer for a batch left over
from an earlier run. Malformed input is answered with a message and the
same question again; it never reaches the executor.

Prompting itself is behind ``Prompter`` so the CLI can render with rich
while tests feed scripted answers.
"""

from __future__ import annotations

import abc
import logging
import re
from decimal import Decimal
from typing import Callable, Sequence

from raiffcli.exceptions import ConfigurationError, TransferAborted
from raiffcli.models.transaction import (
    DOMESTIC_CURRENCY,
    FUNDS_ORIGIN_THRESHOLD,
    FUNDS_ORIGINS,
    Batch,
    BatchKey,
    TransactionRequest,
    requires_funds_origin,
    validate_amount,
    validate_description,
)
from raiffcli.store.address_book import RecipientEntry
from raiffcli.store.queue_store import TransactionQueueStore

logger = logging.getLogger(__name__)

SKIP = "- skip -"
_ZERO_RE = re.compile(r"^0+(\.0+)?$")


class Prompter(abc.ABC):
    """Operator-facing questions and notices."""

    @abc.abstractmethod
    def ask(self, prompt: str, *, choices: Sequence[str] | None = None, default: str | None = None) -> str:
        """Return the operator's raw answer."""

    @abc.abstractmethod
    def confirm(self, prompt: str, *, default: bool = True) -> bool:
        """Ask a yes/no question."""

    @abc.abstractmethod
    def show_batch(self, title: str, batch: Batch) -> None:
        """Render *batch* as a table."""

    @abc.abstractmethod
    def notify(self, message: str, *, level: str = "info") -> None:
        """Print a notice; ``level`` is ``info``, ``warning`` or ``error``."""


def ask_validated(
    prompter: Prompter,
    prompt: str,
    validator: Callable[[str], str],
    *,
    choices: Sequence[str] | None = None,
    default: str | None = None,
) -> str:
    """Ask until *validator* accepts the answer, then return its result."""
    while True:
        answer = prompter.ask(prompt, choices=choices, default=default)
        try:
            return validator(answer)
        except ValueError as exc:
            prompter.notify(str(exc), level="error")


def _one_of(options: Sequence[str], error: str) -> Callable[[str], str]:
    def _validate(value: str) -> str:
        if value not in options:
            raise ValueError(error % value)
        return value

    return _validate


def choose_account(prompter: Prompter, accounts: Sequence[str]) -> str:
    """Return the only account, or let the operator pick one of several."""
    if len(accounts) == 1:
        return accounts[0]
    return ask_validated(
        prompter,
        "Account",
        _one_of(accounts, "Account %s does not exist."),
        choices=accounts,
        default=accounts[0],
    )


class BatchCollector:
    """Builds the batch for one command and account class.

    Args:
        prompter: Operator I/O.
        store: Queue store, read for the resume offer only.
        recipients: Recipients eligible for this command.
        currency: Currency the amounts are entered in.
        domestic_currency: Currency the funds-origin rule applies to.
        funds_origin_threshold: Amount above which funds origin is declared.
    """

    def __init__(
        self,
        prompter: Prompter,
        store: TransactionQueueStore,
        recipients: Sequence[RecipientEntry],
        *,
        currency: str,
        domestic_currency: str = DOMESTIC_CURRENCY,
        funds_origin_threshold: Decimal = FUNDS_ORIGIN_THRESHOLD,
    ) -> None:
        self.prompter = prompter
        self.store = store
        self.recipients = {entry.alias: entry for entry in recipients}
        self.currency = currency
        self.domestic_currency = domestic_currency
        self.funds_origin_threshold = funds_origin_threshold

    def collect(self, key: BatchKey) -> Batch:
        """Run the whole dialogue and return the confirmed batch.

        The store is only read here. Saving the result is the executor's
        first step, so aborting leaves the queue exactly as it was.

        Raises:
            TransferAborted: If the operator declines the final confirmation.
            QueueCorrupt: If the persisted batch for *key* is unreadable.
        """
        batch = self.offer_resume(key)
        batch = batch.merged(self.collect_new(has_pending=not batch.is_empty))

        self.prompter.show_batch("Transactions", batch)
        if not self.prompter.confirm("Are you sure you want to register these transactions?"):
            raise TransferAborted("Transfer aborted.")
        return batch

    def offer_resume(self, key: BatchKey) -> Batch:
        """Offer the unexecuted batch from a previous run for *key*."""
        previous = self.store.load(key)
        if previous.is_empty:
            return previous

        self.prompter.show_batch("Transactions from the previous session are present", previous)
        if self.prompter.confirm("Do you want to import these transactions?"):
            logger.info("Resuming %d queued transaction(s) for %s", len(previous), key)
            return previous
        logger.info("Operator set aside %d queued transaction(s) for %s", len(previous), key)
        return Batch()

    def collect_new(self, *, has_pending: bool = False) -> Batch:
        """Ask for transactions until the operator picks the skip entry.

        Skipping with nothing collected restarts the loop unless
        *has_pending* says resumed transactions already fill the batch.
        """
        if not self.recipients and not has_pending:
            raise ConfigurationError(
                "There are no recipients for this transfer. "
                "Please add one using the 'recipient add' command."
            )
        collected: list[TransactionRequest] = []
        while True:
            entry = self._ask_recipient()
            if entry is None:
                if collected or has_pending:
                    return Batch(transactions=collected)
                self.prompter.notify("Add at least one transaction.", level="warning")
                continue

            transaction = self._ask_transaction(entry)
            if transaction is None:
                continue
            collected.append(transaction)
            self.prompter.notify(f"Added transaction to {transaction.summary()}")

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    def _ask_recipient(self) -> RecipientEntry | None:
        options = [*self.recipients, SKIP]
        alias = ask_validated(
            self.prompter,
            "Recipient",
            _one_of(options, "Recipient %s does not exist."),
            choices=options,
            default=SKIP,
        )
        return None if alias == SKIP else self.recipients[alias]

    def _ask_transaction(self, entry: RecipientEntry) -> TransactionRequest | None:
        amount = ask_validated(self.prompter, f"Amount in {self.currency}", _amount_or_skip)
        if not amount or Decimal(amount) == 0:
            self.prompter.notify("Skipping transaction with empty amount.", level="warning")
            return None

        funds_origin = None
        if requires_funds_origin(
            Decimal(amount),
            self.currency,
            domestic_currency=self.domestic_currency,
            threshold=self.funds_origin_threshold,
        ):
            origins = list(FUNDS_ORIGINS.values())
            funds_origin = ask_validated(
                self.prompter,
                "Origin of funds",
                _one_of(origins, "Please choose an origin of funds (got %r)."),
                choices=origins,
            )

        description = ask_validated(self.prompter, "Description", _description_or_skip)
        if not description:
            self.prompter.notify("Skipping transaction with empty description.", level="warning")
            return None

        return TransactionRequest(
            recipient=entry.to_recipient(),
            amount=amount,
            currency=self.currency,
            description=description,
            funds_origin=funds_origin,
        )


def _amount_or_skip(value: str) -> str:
    """Accept ``123.45``, or an empty or zero amount meaning "skip"."""
    if value == "":
        return value
    if _ZERO_RE.match(value):
        return value
    return validate_amount(value)


def _description_or_skip(value: str) -> str:
    return value if value == "" else validate_description(value)
