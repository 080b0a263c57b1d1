"""Fund movement commands for RunVault CLI.

Handles deposits, payouts, withdrawals, exchanges and transfers.
"""

from typing import Optional

import click

from runvault.cli.common import AMOUNT, get_service, report
from runvault.money import format_minor


def _balance_line(result) -> str:
    wallet = result.wallet
    return (
        f"Available: {format_minor(wallet.available_minor)}\n"
        f"Running/Pending: {format_minor(wallet.pending_minor)}"
    )


@click.command()
@click.argument("amount", type=AMOUNT)
@click.option("--network", default=None, help="Deposit network (e.g. TRC20).")
@click.option("--tx", "tx_hash", default=None, help="Transaction hash.")
def deposit(amount: int, network: Optional[str], tx_hash: Optional[str]) -> None:
    """Credit a deposit of AMOUNT dollars.

    \b
    Examples:
      runvault deposit 500
      runvault deposit 1,250.50 --network TRC20
    """
    service = get_service()
    result = service.deposit(service.settings.user_id, amount, network=network, tx_hash=tx_hash)
    report(result, "Deposit", _balance_line(result) if result.ok else None)


@click.command()
def payout() -> None:
    """Pay out all accrued earnings to the available balance.

    \b
    Examples:
      runvault payout
    """
    service = get_service()
    result = service.manual_payout(service.settings.user_id)
    report(result, "Payout", _balance_line(result) if result.ok else None)


@click.command()
@click.argument("amount")
@click.option(
    "-c", "--crypto",
    type=click.Choice(["BTC", "ETH"], case_sensitive=False),
    default=None,
    help="Withdraw crypto instead of dollars; AMOUNT is then in coins.",
)
def withdraw(amount: str, crypto: Optional[str]) -> None:
    """Request a withdrawal of AMOUNT.

    A withdrawal fee is charged on top of the amount.

    \b
    Examples:
      runvault withdraw 50
      runvault withdraw 0.01 --crypto BTC
    """
    service = get_service()
    user_id = service.settings.user_id

    if crypto:
        coins = click.FLOAT.convert(amount, None, None)
        result = service.request_crypto_withdrawal(user_id, crypto.upper(), coins)
        report(result, "Withdrawal")
        return

    amount_minor = AMOUNT.convert(amount, None, None)
    result = service.request_withdrawal(user_id, amount_minor)
    report(result, "Withdrawal", _balance_line(result) if result.ok else None)


@click.command()
@click.argument("direction", type=click.Choice(["sell", "buy"], case_sensitive=False))
@click.argument("symbol", type=click.Choice(["BTC", "ETH"], case_sensitive=False))
@click.argument("amount")
@click.option("-p", "--price", type=float, default=None, help="USDT price per coin (defaults to config).")
def exchange(direction: str, symbol: str, amount: str, price: Optional[float]) -> None:
    """Exchange between crypto and USDT.

    SELL converts AMOUNT coins into USDT; BUY spends AMOUNT USDT on coins.

    \b
    Examples:
      runvault exchange sell BTC 0.01
      runvault exchange buy ETH 300 --price 3100
    """
    service = get_service()
    user_id = service.settings.user_id
    symbol = symbol.upper()
    price_usdt = price if price is not None else service.settings.price_for(symbol)

    if direction.lower() == "sell":
        coins = click.FLOAT.convert(amount, None, None)
        result = service.exchange(user_id, "CRYPTO_TO_USDT", symbol, price_usdt, amount_crypto=coins)
    else:
        spend = AMOUNT.convert(amount, None, None)
        result = service.exchange(user_id, "USDT_TO_CRYPTO", symbol, price_usdt, amount_usdt_minor=spend)

    report(result, "Exchange", _balance_line(result) if result.ok else None)


@click.command()
@click.argument("to_account")
@click.argument("amount", type=AMOUNT)
def transfer(to_account: str, amount: int) -> None:
    """Send AMOUNT dollars to another account.

    \b
    Examples:
      runvault transfer u_2 25
    """
    service = get_service()
    result = service.transfer(service.settings.user_id, to_account, amount)
    report(result, "Transfer", _balance_line(result) if result.ok else None)
