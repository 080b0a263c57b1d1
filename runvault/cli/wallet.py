"""Wallet commands for RunVault CLI.

Displays balances, holdings, the ledger and the earnings dashboard.
"""

import click
from rich.panel import Panel
from rich.table import Table

from runvault.cli.common import console, get_service
from runvault.money import format_minor, format_percent


def _amount_style(minor: int) -> str:
    color = "green" if minor >= 0 else "red"
    sign = "+" if minor > 0 else ""
    return f"[{color}]{sign}{format_minor(minor)}[/{color}]"


@click.command()
def wallet() -> None:
    """Show balances and crypto holdings.

    \b
    Examples:
      runvault wallet
    """
    from runvault.metrics import accrued_minor

    service = get_service()
    user_id = service.settings.user_id
    current = service.get_wallet(user_id)
    assets = service.get_assets(user_id)
    accrued = accrued_minor(service.get_ledger(user_id))

    summary_text = (
        f"[bold]Account {user_id}[/bold] ({current.currency})\n\n"
        f"Available:   [green]{format_minor(current.available_minor)}[/green]\n"
        f"Running:     [yellow]{format_minor(current.pending_minor)}[/yellow]\n"
        f"Accrued:     [cyan]{format_minor(accrued)}[/cyan]"
    )
    console.print(Panel(summary_text, title="[bold]Wallet[/bold]", border_style="cyan"))

    table = Table(title="Holdings")
    table.add_column("Asset", style="cyan")
    table.add_column("Amount", justify="right")
    table.add_row("USDT", format_minor(assets.usdt_minor).lstrip("$"))
    table.add_row("BTC", f"{assets.btc:.8f}")
    table.add_row("ETH", f"{assets.eth:.8f}")
    console.print(table)


@click.command()
@click.option("-n", "--limit", type=int, default=20, show_default=True, help="Entries to show.")
@click.option("-t", "--type", "entry_type", default=None, help="Only show one entry type (e.g. EARN).")
def ledger(limit: int, entry_type: str) -> None:
    """Show ledger entries, newest first.

    \b
    Examples:
      runvault ledger
      runvault ledger -n 50 -t PAYOUT
    """
    service = get_service()
    entries = service.get_ledger(service.settings.user_id)
    if entry_type:
        entries = [e for e in entries if e.type.value == entry_type.upper()]

    if not entries:
        console.print("[dim]No ledger entries.[/dim]")
        return

    table = Table(title=f"Ledger ({len(entries)} entries)")
    table.add_column("Time", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Amount", justify="right")
    table.add_column("Ref")
    table.add_column("Details", style="dim")

    for entry in entries[:limit]:
        if entry.currency in ("BTC", "ETH"):
            amount = f"{entry.meta.get('amount_crypto', 0):.8f} {entry.currency}"
        else:
            amount = _amount_style(entry.amount_minor)
        details = ", ".join(f"{k}={v}" for k, v in entry.meta.items())
        table.add_row(
            entry.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            entry.type.value,
            amount,
            entry.ref_id or "",
            details,
        )

    console.print(table)


@click.command()
def earnings() -> None:
    """Show the earnings dashboard.

    Today's earnings, yesterday's gross/fee/net, payout status and yield.

    \b
    Examples:
      runvault earnings
    """
    from runvault.metrics import wallet_kpis

    service = get_service()
    user_id = service.settings.user_id
    kpis = wallet_kpis(
        service.get_wallet(user_id),
        service.get_ledger(user_id),
        service.clock.today(),
        service.settings.service_fee_rate,
    )

    status_colors = {"SENT": "green", "PARTIAL": "yellow", "PENDING": "dim"}
    status = kpis["payout_status"]
    color = status_colors.get(status, "white")

    summary_text = (
        f"[bold]Earnings[/bold]\n\n"
        f"Balance:            {format_minor(kpis['balance_minor'])}\n"
        f"Running:            {format_minor(kpis['running_minor'])}\n"
        f"Accrued:            {format_minor(kpis['accrued_minor'])}\n"
        f"Total earned:       {format_minor(kpis['total_minor'])}\n"
        f"Today:              {_amount_style(kpis['today_minor'])}\n"
        f"{'─' * 35}\n"
        f"Yesterday gross:    {format_minor(kpis['yesterday_gross_minor'])}\n"
        f"Service fee:        {format_minor(kpis['yesterday_fee_minor'])}\n"
        f"Yesterday net:      {format_minor(kpis['yesterday_net_minor'])}\n"
        f"Payout:             [{color}]{status}[/{color}] "
        f"({format_minor(kpis['paid_today_minor'])} paid today)\n"
        f"Yield:              {format_percent(kpis['yield_percent'])}"
    )
    console.print(Panel(summary_text, title="[bold]Dashboard[/bold]", border_style="cyan"))
