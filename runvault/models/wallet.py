"""Wallet and asset balance data models."""

from datetime import datetime

from pydantic import BaseModel, Field


class Wallet(BaseModel):
    """Per-user fiat wallet, amounts in minor units (cents)."""

    available_minor: int = Field(default=0, ge=0, description="Spendable balance")
    pending_minor: int = Field(default=0, ge=0, description="Running capital and pending withdrawals")
    currency: str = Field(default="USD", min_length=1, description="Wallet currency")
    updated_at: datetime = Field(
        default_factory=datetime.now, description="Last mutation timestamp"
    )

    model_config = {"frozen": True}


class AssetBalances(BaseModel):
    """Per-user crypto holdings.

    USDT is tracked in minor units and mirrors the fiat wallet whenever an
    exchange touches it; BTC and ETH are held in native units.
    """

    usdt_minor: int = Field(default=0, ge=0, description="USDT holding in minor units")
    btc: float = Field(default=0.0, ge=0, description="BTC holding")
    eth: float = Field(default=0.0, ge=0, description="ETH holding")

    model_config = {"frozen": True}

    def holding(self, symbol: str) -> float:
        """Get the native holding for a crypto symbol (BTC or ETH)."""
        if symbol == "BTC":
            return self.btc
        if symbol == "ETH":
            return self.eth
        raise ValueError(f"Unsupported crypto symbol: {symbol}")

    def with_holding(self, symbol: str, amount: float) -> "AssetBalances":
        """Return a copy with the holding for ``symbol`` replaced."""
        if symbol not in ("BTC", "ETH"):
            raise ValueError(f"Unsupported crypto symbol: {symbol}")
        return self.model_copy(update={symbol.lower(): max(0.0, amount)})
