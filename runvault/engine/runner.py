"""Run session: drives order emission for one user while running."""

import logging
from collections import deque
from typing import Callable, Optional

from runvault.accounts.service import AccountService
from runvault.clock import Clock, SystemClock
from runvault.config import Settings
from runvault.engine.emitter import OrderEmitter
from runvault.engine.rng import NoiseSource
from runvault.engine.scheduler import Scheduler, Timer
from runvault.models import DailyPlan, OperationResult, RunOrder

logger = logging.getLogger(__name__)

OrderListener = Callable[[RunOrder], None]


class RunSession:
    """Emits simulated orders on a randomized cadence while running.

    Emission uses a single-shot timer re-armed after each order, so
    stopping cancels the pending timer and nothing fires afterwards. A
    periodic timer watches for the calendar day to change and restarts
    emission against the new day's plan, or against a rebuilt plan after
    the running capital changed.

    Args:
        service: Account service used to post earnings.
        user_id: Account the session runs for.
        scheduler: Timer source.
        clock: Time source; share it with the scheduler in tests.
        settings: Cadence, rollover period, platforms and display cap.
        noise: Source for order noise and delays.
    """

    def __init__(
        self,
        service: AccountService,
        user_id: str,
        scheduler: Scheduler,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
        noise: Optional[NoiseSource] = None,
    ):
        self._service = service
        self._user_id = user_id
        self._scheduler = scheduler
        self._clock = clock or SystemClock()
        self._settings = settings or service.settings
        self._noise = noise or NoiseSource()
        self._emitter = OrderEmitter(self._settings.platforms, self._clock, self._noise)

        self._running = False
        self._emit_timer: Optional[Timer] = None
        self._rollover_timer: Optional[Timer] = None
        self._orders: deque[RunOrder] = deque(maxlen=self._settings.display_limit)
        self._listeners: list[OrderListener] = []

    @property
    def running(self) -> bool:
        return self._running

    @property
    def plan(self) -> Optional[DailyPlan]:
        return self._emitter.plan

    @property
    def orders(self) -> list[RunOrder]:
        """Recently emitted orders, newest first."""
        return list(self._orders)

    def on_order(self, listener: OrderListener) -> None:
        """Register a callback invoked after each order is posted."""
        self._listeners.append(listener)

    def _invested_minor(self) -> int:
        return self._service.get_wallet(self._user_id).pending_minor

    def current_plan(self) -> DailyPlan:
        """Today's plan for the current running capital."""
        return self._emitter.ensure_plan(self._invested_minor())

    # ==================== Control ====================

    def start(self, amount_minor: int) -> OperationResult:
        """Invest ``amount_minor`` and start running if the investment succeeds."""
        result = self._service.start_run(self._user_id, amount_minor)
        if not result.ok:
            return result
        if self._running:
            self._check_rollover()
        else:
            self.resume()
        return result

    def resume(self) -> None:
        """Start running on the capital already invested."""
        if self._running:
            return
        self._running = True
        self._emitter.ensure_plan(self._invested_minor())
        self._rollover_timer = self._scheduler.call_every(
            self._settings.rollover_period, self._check_rollover
        )
        self._schedule_next()
        logger.debug("Run started for %s", self._user_id)

    def stop(self) -> None:
        """Stop running. Orders already posted stay in the ledger."""
        self._running = False
        self._cancel_emit()
        if self._rollover_timer is not None:
            self._rollover_timer.cancel()
            self._rollover_timer = None
        logger.debug("Run stopped for %s", self._user_id)

    # ==================== Timers ====================

    def _cancel_emit(self) -> None:
        if self._emit_timer is not None:
            self._emit_timer.cancel()
            self._emit_timer = None

    def _schedule_next(self) -> None:
        self._cancel_emit()
        delay = self._noise.uniform(self._settings.emit_min_delay, self._settings.emit_max_delay)
        self._emit_timer = self._scheduler.call_later(delay, self._tick)

    def _tick(self) -> None:
        self._emit_timer = None
        if not self._running:
            return
        invested = self._invested_minor()
        if invested <= 0:
            return

        plan = self._emitter.ensure_plan(invested)
        if plan.exhausted:
            # The rollover check re-arms once a new day or capital gives capacity
            logger.debug("Plan for %s exhausted", plan.day)
            return

        order = self._emitter.emit(invested)
        if order is None:
            return
        self._service.post_earning(self._user_id, order)
        self._orders.appendleft(order)
        logger.debug(
            "Order %s %s +%d minor (%d/%d)",
            order.platform,
            order.symbol,
            order.profit_minor,
            self._emitter.plan.orders_done,
            self._emitter.plan.orders_planned,
        )
        for listener in self._listeners:
            listener(order)
        self._schedule_next()

    def _check_rollover(self) -> None:
        """Keep the plan current and restart emission when it has capacity again.

        Runs on the rollover period. A new day or a capital change rebuilds
        the plan; an idle session re-arms once that plan has orders left.
        """
        if not self._running:
            return
        previous = self._emitter.plan
        invested = self._invested_minor()
        plan = self._emitter.ensure_plan(invested)
        if previous is None or previous.day != plan.day:
            logger.debug("Day rolled over to %s", plan.day)
        if self._emit_timer is None and invested > 0 and not plan.exhausted:
            self._schedule_next()
