"""CLI commands for inspecting the transaction queue."""

from __future__ import annotations

import typer

from raiffcli.cli.common import batch_table, console, reporting_errors
from raiffcli.models.transaction import AccountClass, OperationKind

queue_app = typer.Typer(help="Inspect or discard transfers that were queued but not yet confirmed.")


@queue_app.command("show")
def show_queue() -> None:
    """List every outstanding batch per command and account type."""
    from raiffcli.store import TransactionQueueStore

    with reporting_errors():
        outstanding = TransactionQueueStore.from_settings().outstanding()

    if not outstanding:
        console.print("The queue is empty.")
        return
    for key, batch in outstanding.items():
        console.print(batch_table(str(key), batch))


@queue_app.command("discard")
def discard_queue(
    operation: OperationKind = typer.Argument(..., help="The command the batch belongs to."),
    account_class: AccountClass = typer.Argument(..., help="The account type of the batch."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Discard the queued batch of a command and account type."""
    from raiffcli.models.transaction import BatchKey
    from raiffcli.store import TransactionQueueStore

    key = BatchKey(operation=operation, account_class=account_class)
    with reporting_errors():
        store = TransactionQueueStore.from_settings()
        batch = store.load(key)
        if batch.is_empty:
            console.print(f"No queued transactions for {key}.")
            return
        console.print(batch_table(str(key), batch))
        if not yes and not typer.confirm("Discard these transactions?", default=False):
            raise typer.Exit(code=1)
        discarded = store.discard(key)

    console.print(f"Discarded {discarded} transaction(s) for {key}.")
