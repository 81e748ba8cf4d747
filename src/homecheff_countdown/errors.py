"""
Errors raised by the countdown stores, the dispatcher and the engine.

Per-order errors are caught inside a sweep and counted; only a failure to
list eligible orders at all escapes `DeliveryCountdownEngine.run_sweep`.
"""

from homecheff_countdown.domain.models import Tier


class CountdownError(Exception):
    """Base class for countdown engine errors."""


class StoreUnavailable(CountdownError):
    """The order store or the warning store could not be reached."""


class DispatchFailure(CountdownError):
    """The notification dispatcher failed to deliver a warning."""

    def __init__(self, order_id: str, reason: str) -> None:
        super().__init__(f"dispatch failed for order {order_id}: {reason}")
        self.order_id = order_id
        self.reason = reason


class ConcurrentUpdateConflict(CountdownError):
    """A compare-and-set found the stored tier changed by another writer."""

    def __init__(self, order_id: str, expected: Tier, actual: Tier | None) -> None:
        super().__init__(
            f"warning tier for order {order_id} is {actual.value if actual is not None else None}, expected {expected.value}"
        )
        self.order_id = order_id
        self.expected = expected
        self.actual = actual
