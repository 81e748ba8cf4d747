"""
Warning record store facade.

Holds, per order, the highest tier already notified. A tier advance is a
two-step write around the dispatch:

  1. `claim_tier`  - reserve the crossing for one sweep (compare-and-set on
     the current tier plus a lease). A concurrent sweep gets
     ConcurrentUpdateConflict and leaves the order alone. The claim comes
     back with an owner token.
  2. `compare_and_set_tier` - record the new tier once the dispatch went
     out, clearing the claim. `release_claim` drops it, by token, when the
     dispatch failed.

Leases run on the store's own clock, not on the sweep's `now`. Sweeps from
consecutive schedule ticks carry `now` values an interval apart, and a
lease measured against those would expire before it was ever checked.

A sweep that dies between the steps leaves a claim that expires after its
lease, so the crossing is retried rather than lost.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol

from homecheff_countdown.domain.models import Tier, WarningRecord
from homecheff_countdown.errors import ConcurrentUpdateConflict, StoreUnavailable

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WarningStore(Protocol):
    """Keyed store of WarningRecords, written only by compare-and-set."""

    async def get_warning(self, order_id: str) -> WarningRecord | None: ...

    async def claim_tier(
        self, order_id: str, expected_old_tier: Tier, new_tier: Tier, lease: timedelta
    ) -> str: ...

    async def release_claim(self, order_id: str, claim_token: str) -> None: ...

    async def compare_and_set_tier(
        self, order_id: str, expected_old_tier: Tier, new_tier: Tier, notified_at: datetime
    ) -> WarningRecord: ...


class InMemoryWarningStore:
    """WarningRecords in a dict, guarded by an asyncio.Lock.

    An order without a record reads as None and is treated as tier NONE.
    `available = False` makes every call raise StoreUnavailable. `clock`
    stands in for the database server's time.
    """

    def __init__(self, latency: float = 0.0, clock: Callable[[], datetime] = utc_now) -> None:
        self._records: dict[str, WarningRecord] = {}
        self._lock = asyncio.Lock()
        self.latency = latency
        self.clock = clock
        self.available = True

    async def _io(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)
        if not self.available:
            raise StoreUnavailable("warning store is unavailable")

    def _current(self, order_id: str) -> WarningRecord:
        return self._records.get(order_id) or WarningRecord(order_id=order_id)

    async def get_warning(self, order_id: str) -> WarningRecord | None:
        await self._io()
        return self._records.get(order_id)

    async def claim_tier(
        self, order_id: str, expected_old_tier: Tier, new_tier: Tier, lease: timedelta
    ) -> str:
        await self._io()
        async with self._lock:
            current = self._current(order_id)
            if current.tier != expected_old_tier:
                raise ConcurrentUpdateConflict(order_id, expected_old_tier, current.tier)
            claimed_at = self.clock()
            if current.claimed_until is not None and current.claimed_until > claimed_at:
                raise ConcurrentUpdateConflict(order_id, expected_old_tier, current.claimed_tier)
            token = uuid.uuid4().hex
            self._records[order_id] = current.model_copy(
                update={"claimed_tier": new_tier, "claimed_until": claimed_at + lease, "claim_token": token}
            )
        return token

    async def release_claim(self, order_id: str, claim_token: str) -> None:
        await self._io()
        async with self._lock:
            current = self._records.get(order_id)
            # A claim re-taken after our lease ran out belongs to someone else.
            if current is None or current.claim_token != claim_token:
                return
            self._records[order_id] = current.model_copy(
                update={"claimed_tier": None, "claimed_until": None, "claim_token": None}
            )

    async def compare_and_set_tier(
        self, order_id: str, expected_old_tier: Tier, new_tier: Tier, notified_at: datetime
    ) -> WarningRecord:
        await self._io()
        async with self._lock:
            current = self._current(order_id)
            if current.tier != expected_old_tier:
                raise ConcurrentUpdateConflict(order_id, expected_old_tier, current.tier)
            record = WarningRecord(order_id=order_id, tier=new_tier, last_notified_at=notified_at)
            self._records[order_id] = record
        logger.debug("Warning tier for order %s: %s -> %s", order_id, expected_old_tier.value, new_tier.value)
        return record

    def snapshot(self) -> dict[str, WarningRecord]:
        return dict(self._records)
