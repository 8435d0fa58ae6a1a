"""Unified CLI entry point for raiffcli.

Config precedence: settings.default.toml -> settings.<env>.toml -> settings.local.toml -> env vars (RAIFF_* with double underscores) -> CLI flags.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import typer

from raiffcli.cli.account_cmd import account_app
from raiffcli.cli.queue_cmd import queue_app
from raiffcli.cli.recipient_cmd import recipient_app
from raiffcli.cli.settings_cmd import settings_app
from raiffcli.cli.transfer_cmd import transfer_app

try:
    from importlib.metadata import version

    VERSION = version("raiffcli")
except Exception:
    VERSION = "unknown"

APP_HELP = (
    "raiffcli — batch transfers against the Raiffeisen online banking UI. "
    "Queued transfers survive interruptions and are offered again on the next run. "
    "Config precedence: settings.default.toml -> settings.local.toml -> env vars (RAIFF_* with __) -> CLI flags."
)

app = typer.Typer(add_completion=True, help=APP_HELP)

app.add_typer(transfer_app, name="transfer")
app.add_typer(account_app, name="account")
app.add_typer(recipient_app, name="recipient")
app.add_typer(queue_app, name="queue")
app.add_typer(settings_app, name="settings")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=sys.stderr,
    )

    # Quieten noisy libraries
    logging.getLogger("selenium").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr."),
    driver: Optional[str] = typer.Option(
        None, "--driver", help="Remote UI driver: playwright or selenium (default: driver.default)."
    ),
) -> None:
    """Show help when no subcommand is provided."""
    if version:
        typer.echo(f"raiffcli {VERSION}")
        raise typer.Exit()
    _configure_logging(verbose)
    ctx.obj = {"driver": driver}
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


if __name__ == "__main__":
    app()
