"""Main CLI entry point for RunVault.

This module provides the main click group and lazy loading
of command modules to keep startup fast.
"""

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

# Console for rich output
console = Console()


class LazyGroup(click.Group):
    """A click Group that lazily loads commands.

    Command modules are only imported when they are actually invoked.
    """

    def __init__(self, *args, lazy_subcommands: dict[str, str] | None = None, **kwargs):
        """Initialize the lazy group.

        Args:
            lazy_subcommands: Mapping of command names to module paths.
        """
        super().__init__(*args, **kwargs)
        self._lazy_subcommands = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """List all available commands."""
        base = super().list_commands(ctx)
        lazy = list(self._lazy_subcommands.keys())
        return sorted(set(base + lazy))

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get a command by name, lazily loading if needed."""
        if cmd_name in self.commands:
            return self.commands[cmd_name]

        if cmd_name in self._lazy_subcommands:
            return self._lazy_load(cmd_name)

        return None

    def _lazy_load(self, cmd_name: str) -> click.Command:
        """Lazily load a command from its module path."""
        import importlib

        module_path = self._lazy_subcommands[cmd_name]
        module = importlib.import_module(module_path)

        # Module attribute named after the command wins over a scan by name
        attr = getattr(module, cmd_name, None)
        if isinstance(attr, click.Command):
            cmd = attr
        else:
            cmd = None
            for attr_name in dir(module):
                attr = getattr(module, attr_name)
                if isinstance(attr, click.Command) and attr.name == cmd_name:
                    cmd = attr
                    break

            if cmd is None:
                raise click.ClickException(f"Could not find command '{cmd_name}' in {module_path}")

        self.add_command(cmd)
        return cmd


# Define lazy subcommands mapping
LAZY_SUBCOMMANDS = {
    "init": "runvault.cli.configure",
    "wallet": "runvault.cli.wallet",
    "ledger": "runvault.cli.wallet",
    "earnings": "runvault.cli.wallet",
    "deposit": "runvault.cli.funds",
    "payout": "runvault.cli.funds",
    "withdraw": "runvault.cli.funds",
    "exchange": "runvault.cli.funds",
    "transfer": "runvault.cli.funds",
    "run": "runvault.cli.run",
    "referrals": "runvault.cli.referrals",
}


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def _configure_logging(verbose: bool) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group(cls=LazyGroup, lazy_subcommands=LAZY_SUBCOMMANDS, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="runvault")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Show debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """RunVault - simulated run earnings with a wallet ledger.

    Invest part of your balance into a run, watch simulated orders
    accrue earnings through the day, and pay them out to your wallet.

    \b
    Quick Start:
      runvault init                # Create a config file
      runvault deposit 500         # Add funds
      runvault run start 100       # Invest $100 and start running
      runvault wallet              # View balances and earnings
    """
    _configure_logging(verbose)
    ctx.ensure_object(dict)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
