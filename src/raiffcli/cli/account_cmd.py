"""CLI commands for managing sender accounts."""

from __future__ import annotations

from typing import Optional

import typer
from rich.table import Table

from raiffcli.cli.common import RichPrompter, console, err_console, reporting_errors, resolve_account_class

account_app = typer.Typer(help="Manage the bank accounts transfers are sent from.")


@account_app.command("add")
def add_account(
    account_class: Optional[str] = typer.Argument(
        None, help='The account type to use: either "individual" or "corporate".'
    ),
) -> None:
    """Add a bank account."""
    from raiffcli.models.transaction import required_validator
    from raiffcli.store import AddressBook
    from raiffcli.transfer.collector import ask_validated

    prompter = RichPrompter(console)
    with reporting_errors():
        resolved = resolve_account_class(account_class, prompter)
        account = ask_validated(prompter, "Please enter the name of the account to add", required_validator)
        try:
            AddressBook.from_settings().add_account(resolved, account)
        except ValueError as exc:
            err_console.print(f"[red]✗[/red] {exc}")
            raise typer.Exit(code=1) from exc
    console.print(f"Added account '{account.strip()}'.")


@account_app.command("list")
def list_accounts() -> None:
    """List the configured accounts per account type."""
    from raiffcli.models.transaction import AccountClass
    from raiffcli.store import AddressBook

    with reporting_errors():
        book = AddressBook.from_settings()
        rows = [(cls.value, account) for cls in AccountClass for account in book.accounts(cls)]

    if not rows:
        console.print("No accounts configured. Add one with [bold]raiffcli account add[/bold].")
        return

    table = Table(title="Accounts")
    table.add_column("Type", style="cyan")
    table.add_column("Account", style="green")
    for account_class, account in rows:
        table.add_row(account_class, account)
    console.print(table)
