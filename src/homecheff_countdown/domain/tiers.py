"""
Deadline arithmetic and tier classification.

Everything here is pure: the current time is always passed in as `now`,
never read from a clock. That keeps classification deterministic, which
matters both for tests and because the sweep's `now` originates from
`workflow.now()` inside a Temporal workflow.

Thresholds are inclusive towards the more urgent tier: exactly 30 minutes
remaining is APPROACHING, exactly 10 minutes (and exactly zero) is URGENT.
"""

from datetime import datetime, timedelta

from pydantic import BaseModel, model_validator

from homecheff_countdown.domain.models import Order, Tier


class TierThresholds(BaseModel):
    """Boundaries between tiers, as remaining time before the deadline."""

    approaching: timedelta = timedelta(minutes=30)
    urgent: timedelta = timedelta(minutes=10)

    @model_validator(mode="after")
    def _check_order(self) -> "TierThresholds":
        if self.urgent < timedelta(0):
            raise ValueError("urgent threshold must not be negative")
        if self.urgent >= self.approaching:
            raise ValueError("urgent threshold must be smaller than approaching threshold")
        return self

    @classmethod
    def from_minutes(cls, approaching: float, urgent: float) -> "TierThresholds":
        return cls(approaching=timedelta(minutes=approaching), urgent=timedelta(minutes=urgent))


DEFAULT_THRESHOLDS = TierThresholds()


def remaining_time(order: Order, now: datetime) -> timedelta:
    """Signed time left until the order's deadline; negative when overdue."""
    if order.delivery_deadline is None:
        raise ValueError(f"order {order.id} has no delivery deadline")
    return order.delivery_deadline - now


def classify_tier(remaining: timedelta, thresholds: TierThresholds = DEFAULT_THRESHOLDS) -> Tier:
    if remaining < timedelta(0):
        return Tier.OVERDUE
    if remaining <= thresholds.urgent:
        return Tier.URGENT
    if remaining <= thresholds.approaching:
        return Tier.APPROACHING
    return Tier.NONE
