"""CLI commands for the recipient address book."""

from __future__ import annotations

from typing import Optional

import typer
from rich.table import Table

from raiffcli.cli.common import RichPrompter, console, err_console, reporting_errors
from raiffcli.store.address_book import Nationality

recipient_app = typer.Typer(help="Manage the recipient address book.")


@recipient_app.command("add")
def add_recipient(
    alias: Optional[str] = typer.Option(None, "--alias", help="An alias to identify this recipient."),
    name: Optional[str] = typer.Option(None, "--name", help="The name of the recipient."),
    iban: Optional[str] = typer.Option(None, "--iban", help="The IBAN of the recipient."),
    bic: Optional[str] = typer.Option(None, "--bic", help="The BIC of the recipient's bank."),
    address: Optional[str] = typer.Option(None, "--address", help="The address of the recipient."),
    country: Optional[str] = typer.Option(None, "--country", help="The country of the recipient."),
) -> None:
    """Add a recipient.

    Missing details are asked for interactively. Recipients outside the
    domestic IBAN area also need a BIC, a country and an address.
    """
    from raiffcli.models.transaction import required_validator
    from raiffcli.settings import get_settings
    from raiffcli.store import AddressBook, validate_iban
    from raiffcli.transfer.collector import ask_validated

    settings = get_settings()
    prompter = RichPrompter(console)

    with reporting_errors():
        book = AddressBook.from_settings()
        taken = {entry.alias for entry in book.recipients()}

        def _unique_alias(value: str) -> str:
            value = required_validator(value).strip()
            if value in taken:
                raise ValueError("A recipient with this alias already exists.")
            return value

        name = name or ask_validated(prompter, "Recipient name", required_validator)
        if iban:
            try:
                iban = validate_iban(iban)
            except ValueError as exc:
                err_console.print(f"[red]✗[/red] {exc}")
                raise typer.Exit(code=1) from exc
        else:
            iban = ask_validated(prompter, "IBAN", validate_iban)

        if not iban.startswith(settings.transfer.domestic_iban_prefix):
            bic = bic or ask_validated(prompter, "BIC", required_validator)
            country = country or ask_validated(
                prompter, "Recipient country", required_validator, default=settings.transfer.default_country
            )
            address = address or ask_validated(prompter, "Recipient address", required_validator)

        alias = alias or ask_validated(prompter, "Alias", _unique_alias, default=name)

        try:
            entry = book.new_recipient(alias=alias, name=name, iban=iban, bic=bic, address=address, country=country)
            book.add_recipient(entry)
        except ValueError as exc:
            err_console.print(f"[red]✗[/red] {exc}")
            raise typer.Exit(code=1) from exc

    console.print(f"Added recipient '{entry.name}' with IBAN '{entry.iban}'.")


@recipient_app.command("list")
def list_recipients(
    nationality: Optional[Nationality] = typer.Option(
        None, "--nationality", "-n", help="Only list domestic or foreign recipients."
    ),
) -> None:
    """List recipients, sorted by alias."""
    from raiffcli.store import AddressBook

    with reporting_errors():
        entries = AddressBook.from_settings().recipients(nationality)

    if not entries:
        console.print("No recipients found. Add one with [bold]raiffcli recipient add[/bold].")
        return

    table = Table(title=f"Recipients ({len(entries)})")
    table.add_column("Alias", style="cyan")
    table.add_column("Name")
    table.add_column("IBAN", style="green")
    table.add_column("BIC")
    table.add_column("Country")
    for entry in entries:
        table.add_row(entry.alias, entry.name, entry.iban, entry.bic or "", entry.country or "")
    console.print(table)
