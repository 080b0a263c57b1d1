"""Deterministic daily plan builder.

A plan fixes how much simulated profit a day produces and across how many
orders. It is derived only from the calendar day and the invested amount,
so a restarted process rebuilds the identical plan.
"""

import math
from decimal import Decimal
from typing import Union

from runvault.engine.rng import SeededSource
from runvault.models import DailyPlan
from runvault.money import round_half_up

# Capital at or above this (major units) earns the high tier
HIGH_TIER_THRESHOLD = 10_000

# Monthly rate bands: (base, cap)
LOW_TIER_RATES = (0.30, 0.40)
HIGH_TIER_RATES = (0.60, 0.80)

JITTER_LOW = 0.9
JITTER_SPAN = 0.2

MIN_ORDERS = 50
MAX_ORDERS = 100

# Offset separating the order-count seed from the rate seed
ORDER_COUNT_SEED_OFFSET = 77

DAYS_PER_MONTH = 30

_seeded = SeededSource()


def rate_band(invested: float) -> tuple[float, float]:
    """Monthly (base, cap) rate for a capital amount in major units."""
    return LOW_TIER_RATES if invested < HIGH_TIER_THRESHOLD else HIGH_TIER_RATES


def plan_seed(invested: float, day: str) -> int:
    """Seed shared by all plan parameters for ``(invested, day)``."""
    return (int(day) ^ math.floor(invested * 100)) & 0xFFFFFFFF


def monthly_rate(invested: float, day: str) -> float:
    """Effective monthly rate for the day: jittered base, clamped to the cap."""
    base, cap = rate_band(invested)
    jitter = JITTER_LOW + _seeded.rand01(plan_seed(invested, day)) * JITTER_SPAN
    return min(cap, base * jitter)


def build_plan(invested_amount: Union[float, Decimal, int], day: str) -> DailyPlan:
    """Build the plan for a day.

    Args:
        invested_amount: Running capital in major units (>= 0).
        day: Local calendar key (YYYYMMDD).

    Returns:
        A fresh plan with no progress. Zero capital yields an empty plan.
    """
    invested = max(0.0, float(invested_amount))
    invested_minor = math.floor(invested * 100)
    if invested <= 0:
        return DailyPlan(day=day)

    rate = monthly_rate(invested, day)
    target_sum_minor = max(0, round_half_up(invested * rate / DAYS_PER_MONTH * 100))

    seed = plan_seed(invested, day)
    orders_planned = _seeded.randint(
        (seed + ORDER_COUNT_SEED_OFFSET) & 0xFFFFFFFF, MIN_ORDERS, MAX_ORDERS
    )
    # Every order needs at least one minor unit
    orders_planned = min(orders_planned, target_sum_minor)

    return DailyPlan(
        day=day,
        invested_minor=invested_minor,
        orders_planned=orders_planned,
        target_sum_minor=target_sum_minor,
    )


def build_plan_for_minor(invested_minor: int, day: str) -> DailyPlan:
    """Build a plan from capital held in minor units."""
    invested_minor = max(0, invested_minor)
    plan = build_plan(invested_minor / 100, day)
    return plan.model_copy(update={"invested_minor": invested_minor})
