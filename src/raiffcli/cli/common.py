"""Console helpers shared by the CLI commands."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Sequence

import typer
from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table

from raiffcli.exceptions import RaiffCliError
from raiffcli.models.transaction import AccountClass, Batch
from raiffcli.transfer.collector import Prompter, ask_validated

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

_LEVEL_STYLES = {"info": "green", "warning": "yellow", "error": "red"}


class RichPrompter(Prompter):
    """Asks questions on the terminal with rich prompts."""

    def __init__(self, out: Console | None = None) -> None:
        self.console = out or console

    def ask(self, prompt: str, *, choices: Sequence[str] | None = None, default: str | None = None) -> str:
        if choices and len(choices) > 8:
            for choice in choices:
                self.console.print(f"  [cyan]{choice}[/cyan]")
        kwargs = {"default": default} if default is not None else {}
        return Prompt.ask(
            prompt,
            console=self.console,
            choices=list(choices) if choices else None,
            show_choices=bool(choices) and len(choices) <= 8,
            **kwargs,
        )

    def confirm(self, prompt: str, *, default: bool = True) -> bool:
        return Confirm.ask(prompt, console=self.console, default=default)

    def show_batch(self, title: str, batch: Batch) -> None:
        self.console.print(batch_table(title, batch))

    def notify(self, message: str, *, level: str = "info") -> None:
        style = _LEVEL_STYLES.get(level, "white")
        self.console.print(f"[{style}]{message}[/{style}]")


def batch_table(title: str, batch: Batch) -> Table:
    table = Table(title=title)
    table.add_column("#", style="dim", width=4)
    table.add_column("Recipient", style="cyan")
    table.add_column("IBAN")
    table.add_column("Amount", justify="right", style="green")
    table.add_column("Description")
    for i, tx in enumerate(batch.transactions, 1):
        table.add_row(
            str(i),
            tx.recipient.name,
            tx.recipient.iban,
            f"{tx.amount:.2f} {tx.currency}",
            tx.description,
        )
    return table


def resolve_account_class(value: str | None, prompter: Prompter) -> AccountClass:
    """Return *value* as an account class, asking when it is missing or invalid."""
    options = [c.value for c in AccountClass]
    if value in options:
        return AccountClass(value)

    def _validate(answer: str) -> str:
        if answer not in options:
            raise ValueError(f"Account type {answer} is invalid.")
        return answer

    answer = ask_validated(
        prompter, "Please select the account type", _validate, choices=options, default=AccountClass.INDIVIDUAL.value
    )
    return AccountClass(answer)


@contextmanager
def reporting_errors() -> Iterator[None]:
    """Print raiffcli failures to stderr and exit with status 1."""
    try:
        yield
    except RaiffCliError as exc:
        logger.debug("Command failed", exc_info=True)
        err_console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=1) from exc
