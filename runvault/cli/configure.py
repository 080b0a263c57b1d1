"""Configuration commands for RunVault CLI."""

import click
from rich.panel import Panel

from runvault.cli.common import console


@click.command()
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing config file.")
def init(force: bool) -> None:
    """Create a template config file.

    \b
    Examples:
      runvault init
      runvault init --force
    """
    from runvault.config import get_config_path, get_db_path, write_template_config

    config_path = get_config_path()
    if config_path.exists() and not force:
        console.print(Panel(
            f"[yellow]Config already exists at {config_path}[/yellow]\n\n"
            "Use [cyan]runvault init --force[/cyan] to overwrite it.",
            title="[bold yellow]Init[/bold yellow]",
            border_style="yellow",
        ))
        return

    write_template_config(config_path)
    console.print(Panel(
        f"[green]Created config file:[/green] {config_path}\n"
        f"Database: {get_db_path()}\n\n"
        "Edit it to change the account ID, minimum investment, fees and prices.",
        title="[bold green]Init[/bold green]",
        border_style="green",
    ))
