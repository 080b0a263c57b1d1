"""Run commands for RunVault CLI.

Starts and resumes runs, shows today's plan, and simulates a day of
order emission without touching the database.
"""

import asyncio
from datetime import datetime
from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from runvault.cli.common import AMOUNT, console, get_service, print_error, report
from runvault.money import format_minor


def _print_order(order) -> None:
    console.print(
        f"[dim]{order.timestamp:%H:%M:%S}[/dim] "
        f"[cyan]{order.platform:<8}[/cyan] {order.symbol:<9} "
        f"[green]+{format_minor(order.profit_minor)}[/green]"
    )


def _run_live(service, duration: Optional[float]) -> None:
    """Emit orders in real time until interrupted or ``duration`` elapses."""
    from runvault.engine import AsyncioScheduler, RunSession

    async def runner() -> None:
        scheduler = AsyncioScheduler(asyncio.get_running_loop())
        session = RunSession(service, service.settings.user_id, scheduler, settings=service.settings)
        session.on_order(_print_order)
        session.resume()
        try:
            if duration:
                await asyncio.sleep(duration)
            else:
                await asyncio.Event().wait()
        finally:
            session.stop()

    console.print("[dim]Running. Press Ctrl+C to stop.[/dim]")
    try:
        asyncio.run(runner())
    except KeyboardInterrupt:
        pass
    console.print("[dim]Run stopped. Earnings stay accrued until you pay out.[/dim]")


@click.group()
def run() -> None:
    """Run control commands.

    \b
    Commands:
      start     - Invest an amount and start running
      resume    - Keep running on capital already invested
      plan      - Show today's plan
      simulate  - Fast-forward a simulated run (no changes saved)
    """
    pass


@run.command()
@click.argument("amount", type=AMOUNT)
@click.option(
    "-d", "--duration",
    type=float,
    default=None,
    help="Stop after this many seconds (default: run until Ctrl+C).",
)
def start(amount: int, duration: Optional[float]) -> None:
    """Invest AMOUNT dollars and start running.

    \b
    Examples:
      runvault run start 100
      runvault run start 250 --duration 600
    """
    service = get_service()
    result = service.start_run(service.settings.user_id, amount)
    report(result, "Run Started")
    _run_live(service, duration)


@run.command()
@click.option(
    "-d", "--duration",
    type=float,
    default=None,
    help="Stop after this many seconds (default: run until Ctrl+C).",
)
def resume(duration: Optional[float]) -> None:
    """Resume running on capital already invested.

    \b
    Examples:
      runvault run resume
    """
    service = get_service()
    current = service.get_wallet(service.settings.user_id)
    if current.pending_minor <= 0:
        print_error("Nothing is running. Start with [cyan]runvault run start AMOUNT[/cyan].")
        raise SystemExit(1)
    _run_live(service, duration)


@run.command()
@click.option("--amount", type=AMOUNT, default=None, help="Plan for this capital instead.")
def plan(amount: Optional[int]) -> None:
    """Show today's plan for the running capital.

    \b
    Examples:
      runvault run plan
      runvault run plan --amount 15000
    """
    from runvault.clock import today_key
    from runvault.engine import build_plan_for_minor, monthly_rate

    if amount is None:
        service = get_service()
        amount = service.get_wallet(service.settings.user_id).pending_minor

    day = today_key()
    daily = build_plan_for_minor(amount, day)
    rate = monthly_rate(amount / 100, day) if amount > 0 else 0.0

    summary_text = (
        f"[bold]Plan for {day}[/bold]\n\n"
        f"Capital:        {format_minor(daily.invested_minor)}\n"
        f"Monthly rate:   {rate * 100:.2f}%\n"
        f"Orders:         {daily.orders_planned}\n"
        f"Daily target:   [green]{format_minor(daily.target_sum_minor)}[/green]"
    )
    console.print(Panel(summary_text, title="[bold]Daily Plan[/bold]", border_style="cyan"))


@run.command()
@click.option("--amount", type=AMOUNT, default=None, help="Invest this amount first.")
@click.option("--hours", type=float, default=24.0, show_default=True, help="Virtual hours to run.")
@click.option("--seed", type=int, default=None, help="Seed the order noise for a repeatable run.")
@click.option("-n", "--show", type=int, default=10, show_default=True, help="Recent orders to list.")
def simulate(amount: Optional[int], hours: float, seed: Optional[int], show: int) -> None:
    """Fast-forward a run in virtual time.

    Works on an in-memory copy of your account; nothing is saved.

    \b
    Examples:
      runvault run simulate --amount 100
      runvault run simulate --hours 48 --seed 7
    """
    import random

    from runvault.accounts import AccountService, InMemoryStore
    from runvault.clock import ManualClock
    from runvault.engine import ManualScheduler, NoiseSource, RunSession

    live = get_service()
    settings = live.settings
    user_id = settings.user_id

    store = InMemoryStore.from_snapshot(
        user_id,
        live.get_wallet(user_id),
        live.get_assets(user_id),
        live.get_ledger(user_id),
    )
    clock = ManualClock(datetime.now())
    scheduler = ManualScheduler(clock)
    service = AccountService(store, clock=clock, settings=settings)
    noise = NoiseSource(random.Random(seed) if seed is not None else None)
    session = RunSession(service, user_id, scheduler, clock=clock, settings=settings, noise=noise)

    emitted = []
    session.on_order(emitted.append)

    if amount is not None:
        report(session.start(amount), "Simulated Investment")
    elif service.get_wallet(user_id).pending_minor <= 0:
        print_error("Nothing is running. Pass [cyan]--amount[/cyan] to invest first.")
        raise SystemExit(1)
    else:
        session.resume()

    scheduler.advance(hours * 3600)
    session.stop()
    earned = sum(order.profit_minor for order in emitted)

    current = session.plan
    summary_text = (
        f"[bold]Simulated {hours:g}h[/bold]\n\n"
        f"Orders emitted:   {len(emitted)}\n"
        f"Earned:           [green]{format_minor(earned)}[/green]\n"
        f"Today's plan:     {current.orders_done}/{current.orders_planned} orders, "
        f"{format_minor(current.produced_minor)} of {format_minor(current.target_sum_minor)}"
    )
    console.print(Panel(summary_text, title="[bold]Simulation[/bold]", border_style="cyan"))

    if emitted and show > 0:
        table = Table(title="Recent Orders")
        table.add_column("Time", style="dim")
        table.add_column("Platform", style="cyan")
        table.add_column("Pair")
        table.add_column("Profit", justify="right", style="green")
        for order in session.orders[:show]:
            table.add_row(
                order.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                order.platform,
                order.symbol,
                f"+{format_minor(order.profit_minor)}",
            )
        console.print(table)
