"""Referral commands for RunVault CLI."""

from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from runvault.cli.common import console, get_service, print_error
from runvault.money import format_minor


@click.group()
def referrals() -> None:
    """Referral management commands.

    \b
    Commands:
      add   - Record a referred account
      show  - View referral rewards
    """
    pass


@referrals.command()
@click.argument("user_id")
@click.option("--by", "referrer_id", default=None, help="Referrer account (defaults to you).")
def add(user_id: str, referrer_id: Optional[str]) -> None:
    """Record that USER_ID was referred.

    \b
    Examples:
      runvault referrals add u_2
      runvault referrals add u_3 --by u_2
    """
    service = get_service()
    referrer_id = referrer_id or service.settings.user_id
    if user_id == referrer_id:
        print_error("An account cannot refer itself.")
        raise SystemExit(1)

    service.store.add_referral(user_id, referrer_id)
    console.print(f"[green]Recorded[/green] {user_id} as referred by {referrer_id}")


@referrals.command()
def show() -> None:
    """Show referred accounts and rewards.

    \b
    Examples:
      runvault referrals show
    """
    from runvault.metrics import (
        first_reward_minor,
        friend_from_ledger,
        summarize_referrals,
        today_share_minor,
    )

    service = get_service()
    store = service.store
    today = service.clock.today()

    friends = []
    for direct in store.get_referrals(service.settings.user_id):
        friends.append(friend_from_ledger(direct, 1, store.get_ledger(direct), today))
        for second in store.get_referrals(direct):
            friends.append(friend_from_ledger(second, 2, store.get_ledger(second), today))

    summary = summarize_referrals(friends)
    summary_text = (
        f"[bold]Referral Rewards[/bold]\n\n"
        f"Direct referrals:     {summary.l1_count}\n"
        f"Second level:         {summary.l2_count}\n"
        f"First deposit bonus:  {format_minor(summary.first_reward_minor)}\n"
        f"Today's share:        {format_minor(summary.today_share_minor)}\n"
        f"{'─' * 35}\n"
        f"Total:                [green]{format_minor(summary.total_minor)}[/green]"
    )
    console.print(Panel(summary_text, title="[bold]Referrals[/bold]", border_style="cyan"))

    if not friends:
        console.print("[dim]No referrals yet.[/dim]")
        return

    table = Table(title="Referred Accounts")
    table.add_column("Account", style="cyan")
    table.add_column("Level", justify="center")
    table.add_column("First Deposit", justify="right")
    table.add_column("Today's Profit", justify="right")
    table.add_column("Your Share", justify="right", style="green")
    table.add_column("Bonus", justify="right", style="green")
    for friend in friends:
        table.add_row(
            friend.name,
            f"L{friend.level}",
            format_minor(friend.first_deposit_minor),
            format_minor(friend.today_profit_minor),
            format_minor(today_share_minor(friend)),
            format_minor(first_reward_minor(friend)),
        )
    console.print(table)
