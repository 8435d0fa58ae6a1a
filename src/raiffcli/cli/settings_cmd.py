"""CLI commands for inspecting and validating raiffcli settings."""

from __future__ import annotations

import json

import typer
from rich.console import Console

settings_app = typer.Typer(help="Inspect and validate raiffcli configuration.")
console = Console()


@settings_app.command("show")
def show_settings() -> None:
    """Display the currently resolved settings (the password is masked)."""
    from raiffcli.settings import get_settings

    data = get_settings().model_dump(mode="json")
    if data["bank"].get("password"):
        data["bank"]["password"] = "********"
    console.print_json(json.dumps(data, indent=2, default=str))


@settings_app.command("validate")
def validate_settings() -> None:
    """Validate settings and the selected UI profile, and report any issues."""
    from pydantic import ValidationError

    from raiffcli.exceptions import ConfigurationError
    from raiffcli.settings import get_settings
    from raiffcli.ui.profile import load_profile

    try:
        settings = get_settings()
        profile = load_profile(settings.ui.profile, settings.ui.profile_dir)
    except (ValidationError, ConfigurationError) as e:
        console.print(f"[red]✗[/red] Settings validation failed: {e}")
        raise typer.Exit(code=1)

    problems = []
    if settings.driver.default not in ("playwright", "selenium"):
        problems.append(f"driver.default must be 'playwright' or 'selenium', not {settings.driver.default!r}")
    if not settings.bank.username or not settings.bank.password:
        problems.append("bank.username and bank.password are not set")
    unknown = sorted(set(settings.recovery.transient_errors.values()) - {"close_dialog", "retry"})
    if unknown:
        problems.append(f"recovery.transient_errors uses unknown routines: {', '.join(unknown)}")

    if problems:
        for problem in problems:
            console.print(f"[red]✗[/red] {problem}")
        raise typer.Exit(code=1)

    console.print("[green]✓[/green] Settings are valid.")
    console.print(f"  Environment: {settings.env}")
    console.print(f"  Driver: {settings.driver.default}")
    console.print(f"  UI profile: {profile.name}")
    console.print(f"  Data dir: {settings.storage.data_dir}")
