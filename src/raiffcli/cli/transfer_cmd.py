"""CLI commands for registering and signing transfers."""

from __future__ import annotations

from typing import Optional

import typer

from raiffcli.cli.common import RichPrompter, console, reporting_errors, resolve_account_class

transfer_app = typer.Typer(help="Register transfers in the online banking UI and sign pending ones.")

ACCOUNT_CLASS_HELP = 'The account type to use: either "individual" or "corporate".'


def _run_transfer(ctx: typer.Context, operation_value: str, account_class_value: Optional[str]) -> None:
    from raiffcli.browser import create_remote_session
    from raiffcli.models.execution import TransactionOutcome
    from raiffcli.models.transaction import BatchKey, OperationKind
    from raiffcli.settings import get_settings
    from raiffcli.store import AddressBook, Nationality, TransactionQueueStore
    from raiffcli.transfer.collector import BatchCollector, choose_account
    from raiffcli.transfer.executor import BatchExecutor
    from raiffcli.transfer.forms import form_for
    from raiffcli.ui.remote_ui import RemoteUI

    settings = get_settings()
    operation = OperationKind(operation_value)
    prompter = RichPrompter(console)

    with reporting_errors():
        account_class = resolve_account_class(account_class_value, prompter)
        console.print(f"[green]Selected account type: {account_class.value}[/green]")

        book = AddressBook.from_settings()
        account = choose_account(prompter, book.require_accounts(account_class))

        if operation is OperationKind.DOMESTIC:
            nationality, currency = Nationality.DOMESTIC, settings.transfer.domestic_currency
        else:
            nationality, currency = Nationality.FOREIGN, settings.transfer.foreign_currency

        store = TransactionQueueStore.from_settings()
        key = BatchKey(operation=operation, account_class=account_class)
        collector = BatchCollector(
            prompter,
            store,
            book.recipients(nationality),
            currency=currency,
            domestic_currency=settings.transfer.domestic_currency,
            funds_origin_threshold=settings.transfer.funds_origin_threshold,
        )
        batch = collector.collect(key)

        def _confirmed(outcome: TransactionOutcome) -> None:
            console.print(f"[green]✓[/green] Registered transaction to {outcome.transaction.summary()}")

        with create_remote_session(ctx.obj.get("driver") if ctx.obj else None) as session:
            executor = BatchExecutor(
                RemoteUI.from_settings(session),
                store,
                form_for(operation, account_class),
                base_url=settings.bank.base_url,
                username=settings.bank.username,
                password=settings.bank.password,
                on_confirmed=_confirmed,
            )
            result = executor.run(key, batch, account)

    console.print(f"\n[bold]{len(result.confirmed)}[/bold] transaction(s) registered.")


@transfer_app.command("domestic")
def transfer_domestic(
    ctx: typer.Context,
    account_class: Optional[str] = typer.Argument(None, help=ACCOUNT_CLASS_HELP),
) -> None:
    """Do a bank transfer in domestic currency (BGN)."""
    _run_transfer(ctx, "transfer-domestic", account_class)


@transfer_app.command("foreign")
def transfer_foreign(
    ctx: typer.Context,
    account_class: Optional[str] = typer.Argument(None, help=ACCOUNT_CLASS_HELP),
) -> None:
    """Do a bank transfer in foreign currency."""
    _run_transfer(ctx, "transfer-foreign", account_class)


@transfer_app.command("sign")
def transfer_sign(
    ctx: typer.Context,
    account_class: Optional[str] = typer.Argument(None, help=ACCOUNT_CLASS_HELP),
) -> None:
    """Sign pending transfers."""
    from raiffcli.browser import create_remote_session
    from raiffcli.models.transaction import numeric_validator
    from raiffcli.settings import get_settings
    from raiffcli.transfer.collector import ask_validated
    from raiffcli.transfer.signing import AuthorizationChallengeFlow
    from raiffcli.ui.remote_ui import RemoteUI

    settings = get_settings()
    prompter = RichPrompter(console)

    def _respond(challenge: str) -> str:
        return ask_validated(prompter, f"Challenge: {challenge}. Response", numeric_validator)

    with reporting_errors():
        resolved = resolve_account_class(account_class, prompter)
        console.print(f"[green]Selected account type: {resolved.value}[/green]")

        with create_remote_session(ctx.obj.get("driver") if ctx.obj else None) as session:
            flow = AuthorizationChallengeFlow(
                RemoteUI.from_settings(session),
                _respond,
                base_url=settings.bank.base_url,
                username=settings.bank.username,
                password=settings.bank.password,
            )
            result = flow.run(resolved)

    if not result.had_pending:
        console.print(f"[yellow]The {resolved.value} account has no pending transfers.[/yellow]")
        return
    for message in result.messages:
        console.print(f"[yellow]{message}[/yellow]")
    console.print("[green]✓[/green] Pending transfers signed.")
