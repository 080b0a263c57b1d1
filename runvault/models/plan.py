"""Daily plan data model."""

from pydantic import BaseModel, Field, model_validator


class DailyPlan(BaseModel):
    """Deterministic schedule governing one day of simulated earnings.

    Plans are never persisted: they are rebuilt from ``(day, invested_minor)``.
    """

    day: str = Field(..., min_length=8, max_length=8, description="Local calendar key (YYYYMMDD)")
    invested_minor: int = Field(default=0, ge=0, description="Capital the plan was built for")
    orders_planned: int = Field(default=0, ge=0, description="Orders to emit today")
    orders_done: int = Field(default=0, ge=0, description="Orders emitted so far")
    target_sum_minor: int = Field(default=0, ge=0, description="Profit target for the day")
    produced_minor: int = Field(default=0, ge=0, description="Profit emitted so far")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_progress(self) -> "DailyPlan":
        if self.orders_done > self.orders_planned:
            raise ValueError("orders_done exceeds orders_planned")
        if self.produced_minor > self.target_sum_minor:
            raise ValueError("produced_minor exceeds target_sum_minor")
        return self

    @property
    def remaining_orders(self) -> int:
        return self.orders_planned - self.orders_done

    @property
    def remaining_minor(self) -> int:
        return self.target_sum_minor - self.produced_minor

    @property
    def exhausted(self) -> bool:
        """True when no further order can be emitted from this plan."""
        return self.orders_planned == 0 or self.orders_done >= self.orders_planned
