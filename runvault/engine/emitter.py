"""Order emitter: turns a daily plan into individual profit orders."""

import logging
from datetime import datetime
from typing import Optional, Sequence

from runvault.catalog import list_platforms
from runvault.clock import Clock, SystemClock
from runvault.engine.plan import build_plan_for_minor
from runvault.engine.rng import NoiseSource
from runvault.models import DailyPlan, RunOrder
from runvault.money import round_half_up

logger = logging.getLogger(__name__)

# Smallest amount any single order may carry
MIN_ORDER_MINOR = 1

NOISE_LOW = 0.7
NOISE_SPAN = 0.6

SYMBOLS = ("BTC/USDT", "ETH/USDT")


def sample_order_minor(plan: DailyPlan, noise: float) -> int:
    """Size the next order for a plan.

    The draw centres on the remaining target spread evenly over the
    remaining orders, scaled by noise in ``[0.7, 1.3]``. It is clamped so
    each later order can still receive ``MIN_ORDER_MINOR`` without the day
    exceeding its target.

    Args:
        plan: Plan with at least one remaining order.
        noise: Uniform draw in ``[0, 1)``.

    Returns:
        Order amount in minor units.
    """
    remaining_orders = plan.remaining_orders
    remaining_minor = max(0, plan.remaining_minor)
    expected = remaining_minor / remaining_orders
    sample = round_half_up(expected * (NOISE_LOW + noise * NOISE_SPAN))

    max_allowed = max(MIN_ORDER_MINOR, remaining_minor - (remaining_orders - 1) * MIN_ORDER_MINOR)
    return min(max(sample, MIN_ORDER_MINOR), max_allowed)


def next_order(
    plan: DailyPlan,
    noise: NoiseSource,
    platforms: Sequence[str],
    timestamp: Optional[datetime] = None,
) -> tuple[Optional[RunOrder], DailyPlan]:
    """Emit one order from a plan.

    Args:
        plan: Current plan.
        noise: Non-deterministic source for amount, platform and symbol.
        platforms: Display platforms to attribute the order to.
        timestamp: Emission time. Defaults to now.

    Returns:
        ``(order, updated_plan)``; ``(None, plan)`` when the plan is exhausted.
    """
    if plan.exhausted:
        return None, plan

    amount = sample_order_minor(plan, noise.random())
    updated = plan.model_copy(
        update={
            "orders_done": plan.orders_done + 1,
            "produced_minor": plan.produced_minor + amount,
        }
    )
    order = RunOrder(
        platform=noise.choice(list_platforms(platforms)),
        symbol=noise.choice(SYMBOLS),
        profit_minor=amount,
        timestamp=timestamp or datetime.now(),
    )
    return order, updated


def carry_progress(plan: DailyPlan, produced_minor: int) -> DailyPlan:
    """Apply what a day already produced to a plan rebuilt for new capital.

    Produced profit counts against the rebuilt target, and the share of
    orders marked done follows the share of the target already produced.
    Each remaining order can still receive ``MIN_ORDER_MINOR``.

    Args:
        plan: Fresh plan for the same day.
        produced_minor: Profit emitted earlier in the day.

    Returns:
        The plan with progress applied; exhausted when the day already met
        the new target.
    """
    if plan.target_sum_minor <= 0 or produced_minor <= 0:
        return plan
    produced = min(produced_minor, plan.target_sum_minor)
    orders_done = plan.orders_planned * produced // plan.target_sum_minor
    return plan.model_copy(update={"orders_done": orders_done, "produced_minor": produced})


class OrderEmitter:
    """Holds today's plan and keeps it in step with the calendar and capital.

    The plan is rebuilt whenever the day key or the invested amount differs
    from what it was built for. A new day starts from zero and drops any
    unfinished capacity. A capital change within the day keeps what the
    day already produced, so the day never earns more than its current
    target.
    """

    def __init__(
        self,
        platforms: Optional[Sequence[str]] = None,
        clock: Optional[Clock] = None,
        noise: Optional[NoiseSource] = None,
    ):
        self._platforms = list_platforms(platforms)
        self._clock = clock or SystemClock()
        self._noise = noise or NoiseSource()
        self._plan: Optional[DailyPlan] = None
        self._day: Optional[str] = None
        self._produced_today = 0

    @property
    def plan(self) -> Optional[DailyPlan]:
        return self._plan

    @property
    def platforms(self) -> list[str]:
        return list(self._platforms)

    @property
    def produced_today(self) -> int:
        """Profit emitted so far on the current day, across capital changes."""
        return self._produced_today

    def ensure_plan(self, invested_minor: int) -> DailyPlan:
        """Return the current plan, rebuilding it on a new day or new capital."""
        day = self._clock.today_key()
        plan = self._plan
        if plan is not None and plan.day == day and plan.invested_minor == invested_minor:
            return plan

        if self._day != day:
            self._day = day
            self._produced_today = 0
        self._plan = carry_progress(build_plan_for_minor(invested_minor, day), self._produced_today)
        logger.debug(
            "Built plan for %s: %d orders, target %d minor (capital %d, produced %d)",
            day,
            self._plan.orders_planned,
            self._plan.target_sum_minor,
            invested_minor,
            self._plan.produced_minor,
        )
        return self._plan

    def emit(self, invested_minor: int) -> Optional[RunOrder]:
        """Emit the next order for the given capital, or None if none is due."""
        plan = self.ensure_plan(invested_minor)
        order, self._plan = next_order(plan, self._noise, self._platforms, self._clock.now())
        if order is not None:
            self._produced_today += order.profit_minor
        return order
