"""Run order data model."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class RunOrder(BaseModel):
    """A simulated profit event emitted by the order engine."""

    platform: str = Field(..., min_length=1, description="Display platform")
    symbol: Literal["BTC/USDT", "ETH/USDT"] = Field(..., description="Trading pair label")
    profit_minor: int = Field(..., ge=1, description="Profit in minor units")
    timestamp: datetime = Field(..., description="Emission timestamp")

    model_config = {"frozen": True}

    @property
    def profit(self) -> float:
        """Profit in major units."""
        return self.profit_minor / 100
