"""Shared helpers for RunVault CLI commands."""

from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from runvault.money import parse_amount_minor

console = Console()


class AmountType(click.ParamType):
    """Dollar amount such as ``100``, ``$1,250.50`` or ``99.99``, in minor units."""

    name = "amount"

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value
        minor = parse_amount_minor(str(value))
        if minor is None:
            self.fail(f"{value!r} is not a valid amount", param, ctx)
        return minor


AMOUNT = AmountType()


def print_error(message: str, title: str = "Error") -> None:
    console.print(Panel(
        f"[red]{message}[/red]",
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
    ))


def get_settings():
    """Load settings, exiting with a config error panel if they are invalid."""
    import toml
    from pydantic import ValidationError

    from runvault.config import get_config_path, load_settings

    try:
        return load_settings()
    except (toml.TomlDecodeError, ValidationError, ValueError) as e:
        print_error(
            f"Invalid configuration in {get_config_path()}:\n\n{e}",
            title="Config Error",
        )
        raise SystemExit(1)


def get_data_store():
    """Get the data store instance."""
    from runvault.config import get_db_path
    from runvault.db.store import DataStore

    return DataStore(get_db_path())


def get_service(settings=None):
    """Get an account service backed by the local database."""
    from runvault.accounts.service import AccountService

    settings = settings or get_settings()
    return AccountService(get_data_store(), settings=settings)


def report(result, title: str, detail: Optional[str] = None) -> None:
    """Render an operation result; exit with status 1 if it failed."""
    if not result.ok:
        print_error(f"{result.message}\n\n[dim]{result.error.value}[/dim]", title=f"{title} Failed")
        raise SystemExit(1)

    body = f"[green]{result.message}[/green]"
    if detail:
        body += f"\n\n{detail}"
    console.print(Panel(
        body,
        title=f"[bold green]{title}[/bold green]",
        border_style="green",
    ))
