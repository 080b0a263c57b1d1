"""CLI commands for RunVault.

This package provides the command-line interface for RunVault,
including wallet views, fund movements, and run control commands.
"""

from runvault.cli.main import cli, main

__all__ = ["cli", "main"]
