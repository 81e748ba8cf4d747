import asyncio
from datetime import datetime, timedelta, timezone

from homecheff_countdown.domain.models import DispatchInput, Order, OrderStatus
from homecheff_countdown.errors import DispatchFailure, StoreUnavailable
from homecheff_countdown.services.warning_store import InMemoryWarningStore

T0 = datetime(2024, 5, 17, 18, 0, tzinfo=timezone.utc)


class ManualClock:
    """Store clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingDispatcher:
    """Dispatcher double: records every dispatch, can fail or stall on demand."""

    def __init__(self, latency: float = 0.0) -> None:
        self.latency = latency
        self.calls: list[DispatchInput] = []
        self.fail_times = 0

    async def dispatch(self, input: DispatchInput) -> list:
        if self.latency:
            await asyncio.sleep(self.latency)
        if self.fail_times:
            self.fail_times -= 1
            raise DispatchFailure(input.order_id, "push gateway down")
        self.calls.append(input)
        return []

    def tiers_for(self, order_id: str) -> list[str]:
        return [c.tier.value for c in self.calls if c.order_id == order_id]


class FlakyCommitWarningStore(InMemoryWarningStore):
    """Warning store whose tier commits fail a given number of times."""

    def __init__(self, fail_commits: int = 1, clock=None) -> None:
        super().__init__(clock=clock or ManualClock())
        self.fail_commits = fail_commits

    async def compare_and_set_tier(self, order_id, expected_old_tier, new_tier, notified_at):
        if self.fail_commits:
            self.fail_commits -= 1
            raise StoreUnavailable("warning store write timed out")
        return await super().compare_and_set_tier(order_id, expected_old_tier, new_tier, notified_at)


def make_order(
    order_id: str = "order-1",
    deadline_in: timedelta | None = timedelta(minutes=45),
    status: OrderStatus = OrderStatus.IN_TRANSIT,
    now: datetime = T0,
) -> Order:
    return Order(
        id=order_id,
        recipient_id=f"deliverer-of-{order_id}",
        status=status,
        delivery_deadline=None if deadline_in is None else now + deadline_in,
        order_number=f"HC-{order_id}",
    )
