"""Earnings simulation engine for RunVault."""

from runvault.engine.rng import NoiseSource, SeededSource, seeded_rand01
from runvault.engine.plan import build_plan, build_plan_for_minor, monthly_rate, rate_band
from runvault.engine.emitter import OrderEmitter, next_order, sample_order_minor
from runvault.engine.scheduler import AsyncioScheduler, ManualScheduler, Scheduler, Timer
from runvault.engine.runner import RunSession

__all__ = [
    "AsyncioScheduler",
    "ManualScheduler",
    "NoiseSource",
    "OrderEmitter",
    "RunSession",
    "Scheduler",
    "SeededSource",
    "Timer",
    "build_plan",
    "build_plan_for_minor",
    "monthly_rate",
    "next_order",
    "rate_band",
    "sample_order_minor",
    "seeded_rand01",
]
