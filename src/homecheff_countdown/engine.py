"""
DeliveryCountdownEngine: decides which orders need a countdown warning.

One sweep reads every order with an active delivery window, classifies how
close it is to its deadline and, for each order whose tier has moved past
the highest tier already notified, dispatches exactly one warning.

Per order the sequence is read -> claim -> dispatch -> persist:

  - The claim is a compare-and-set on the warning store with a lease kept
    on the store's clock, so of two sweeps racing on one order only one
    ever dispatches, whatever `now` each of them was started with.
  - A failed dispatch releases the claim; the next sweep retries the tier.
  - A failed persist leaves the claim to expire; the tier is redispatched
    later (at-least-once, never lost).

Orders are evaluated concurrently, bounded by a semaphore, and every store
or dispatcher call carries a timeout. Per-order errors are counted in the
SweepResult and never abort the sweep. Only a failure to list orders at all
raises out of `run_sweep`.

The engine keeps no state between sweeps; `now` is always passed in.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from enum import Enum

from homecheff_countdown.domain.models import (
    DispatchDecision,
    DispatchInput,
    Order,
    SweepResult,
    Tier,
)
from homecheff_countdown.domain.tiers import (
    DEFAULT_THRESHOLDS,
    TierThresholds,
    classify_tier,
    remaining_time,
)
from homecheff_countdown.errors import ConcurrentUpdateConflict, CountdownError, StoreUnavailable
from homecheff_countdown.services.notify import NotificationDispatcher
from homecheff_countdown.services.order_store import OrderStore
from homecheff_countdown.services.warning_store import WarningStore

logger = logging.getLogger(__name__)


class _Outcome(str, Enum):
    DISPATCHED = "dispatched"
    SKIPPED = "skipped"
    FAILED = "failed"


class DeliveryCountdownEngine:
    """Sweeps eligible orders and dispatches tier-crossing warnings."""

    def __init__(
        self,
        order_store: OrderStore,
        warning_store: WarningStore,
        dispatcher: NotificationDispatcher,
        thresholds: TierThresholds = DEFAULT_THRESHOLDS,
        max_concurrency: int = 10,
        call_timeout: float = 5.0,
        claim_lease: timedelta = timedelta(seconds=30),
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        # Claim, dispatch and commit must all fit inside one lease.
        if claim_lease <= timedelta(seconds=2 * call_timeout):
            raise ValueError("claim_lease must be longer than two call timeouts")
        self.order_store = order_store
        self.warning_store = warning_store
        self.dispatcher = dispatcher
        self.thresholds = thresholds
        self.max_concurrency = max_concurrency
        self.call_timeout = call_timeout
        self.claim_lease = claim_lease

    # ── Pure computation ─────────────────────────────────────────

    def remaining_time(self, order: Order, now: datetime) -> timedelta:
        return remaining_time(order, now)

    def classify_tier(self, remaining: timedelta) -> Tier:
        return classify_tier(remaining, self.thresholds)

    # ── Sweep ────────────────────────────────────────────────────

    async def sweep(self, now: datetime) -> list[DispatchDecision]:
        """Run one sweep and return the decisions that were dispatched."""
        decisions, _ = await self._sweep(now)
        return decisions

    async def run_sweep(self, now: datetime) -> SweepResult:
        """Run one sweep and summarise it for the scheduler.

        Raises StoreUnavailable when the order store cannot be read.
        """
        _, result = await self._sweep(now)
        return result

    async def _sweep(self, now: datetime) -> tuple[list[DispatchDecision], SweepResult]:
        if now.tzinfo is None:
            raise ValueError("sweep time must be timezone-aware")
        try:
            orders = await self._call(self.order_store.list_eligible_orders(now))
        except asyncio.TimeoutError as exc:
            logger.error("Order store timed out after %.1fs", self.call_timeout)
            raise StoreUnavailable("order store timed out") from exc
        except StoreUnavailable:
            logger.error("Order store unavailable, sweep at %s aborted", now.isoformat())
            raise

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(order: Order) -> tuple[_Outcome, DispatchDecision | None]:
            async with semaphore:
                return await self._evaluate_isolated(order, now)

        outcomes = await asyncio.gather(*(bounded(o) for o in orders))

        decisions = [d for _, d in outcomes if d is not None]
        result = SweepResult(
            dispatched=sum(1 for o, _ in outcomes if o == _Outcome.DISPATCHED),
            skipped=sum(1 for o, _ in outcomes if o == _Outcome.SKIPPED),
            failed=sum(1 for o, _ in outcomes if o == _Outcome.FAILED),
        )
        logger.info(
            "Sweep at %s: %d orders, %d dispatched, %d skipped, %d failed",
            now.isoformat(),
            len(orders),
            result.dispatched,
            result.skipped,
            result.failed,
        )
        return decisions, result

    async def _evaluate_isolated(self, order: Order, now: datetime) -> tuple[_Outcome, DispatchDecision | None]:
        # One order's failure must never take the rest of the sweep with it.
        try:
            return await self._evaluate(order, now)
        except Exception:
            logger.exception("Unexpected error evaluating order %s", order.id)
            return _Outcome.FAILED, None

    async def _evaluate(self, order: Order, now: datetime) -> tuple[_Outcome, DispatchDecision | None]:
        if not order.is_active or order.delivery_deadline is None:
            return _Outcome.SKIPPED, None

        try:
            record = await self._call(self.warning_store.get_warning(order.id))
        except (CountdownError, asyncio.TimeoutError) as exc:
            logger.warning("Could not read warning record for order %s: %r", order.id, exc)
            return _Outcome.FAILED, None

        old_tier = record.tier if record is not None else Tier.NONE
        remaining = self.remaining_time(order, now)
        new_tier = self.classify_tier(remaining)
        if not new_tier > old_tier:
            return _Outcome.SKIPPED, None

        try:
            claim_token = await self._call(
                self.warning_store.claim_tier(order.id, old_tier, new_tier, self.claim_lease)
            )
        except ConcurrentUpdateConflict:
            logger.info("Order %s: %s crossing already claimed by another sweep", order.id, new_tier.value)
            return _Outcome.SKIPPED, None
        except (CountdownError, asyncio.TimeoutError) as exc:
            logger.warning("Could not claim %s for order %s: %r", new_tier.value, order.id, exc)
            return _Outcome.FAILED, None

        decision = DispatchDecision(
            order_id=order.id,
            recipient_id=order.recipient_id,
            tier=new_tier,
            remaining=remaining,
        )
        dispatch = DispatchInput(
            recipient_id=order.recipient_id,
            order_id=order.id,
            tier=new_tier,
            remaining=remaining,
            order_number=order.order_number,
            delivery_order_id=order.delivery_order_id,
        )
        try:
            await self._call(self.dispatcher.dispatch(dispatch))
        except Exception as exc:
            logger.warning("Dispatch of %s for order %s failed, will retry: %r", new_tier.value, order.id, exc)
            await self._release(order.id, claim_token)
            return _Outcome.FAILED, None

        try:
            await self._call(self.warning_store.compare_and_set_tier(order.id, old_tier, new_tier, now))
        except ConcurrentUpdateConflict as exc:
            # Our claim expired and another sweep recorded the tier first.
            logger.info("Order %s already advanced to %s by another sweep", order.id, exc.actual.value)
        except (CountdownError, asyncio.TimeoutError) as exc:
            logger.warning(
                "Dispatched %s for order %s but could not persist it, will redispatch: %r",
                new_tier.value,
                order.id,
                exc,
            )
            return _Outcome.FAILED, decision

        logger.info(
            "Order %s: %s -> %s (%s remaining), notified %s",
            order.id,
            old_tier.value,
            new_tier.value,
            remaining,
            order.recipient_id,
        )
        return _Outcome.DISPATCHED, decision

    async def _release(self, order_id: str, claim_token: str) -> None:
        try:
            await self._call(self.warning_store.release_claim(order_id, claim_token))
        except (CountdownError, asyncio.TimeoutError) as exc:
            # The claim's lease runs out on its own.
            logger.warning("Could not release claim on order %s: %r", order_id, exc)

    async def _call(self, awaitable):
        return await asyncio.wait_for(awaitable, timeout=self.call_timeout)
