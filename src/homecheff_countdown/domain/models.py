"""
Domain models for the delivery countdown engine.

All models use Pydantic v2 BaseModel for validation and serialization.
The sweep request and result cross the Temporal wire as JSON payloads via
the pydantic_data_converter configured on both the client and the worker.

Enums inherit from (str, Enum) so they serialize as plain strings in JSON
(e.g. "URGENT" instead of {"value": "URGENT"}).
"""

from datetime import timedelta
from enum import Enum

from pydantic import AwareDatetime, BaseModel, Field


class OrderStatus(str, Enum):
    """Lifecycle status of a marketplace order."""

    PLACED = "PLACED"
    CONFIRMED = "CONFIRMED"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"   # terminal
    CANCELLED = "CANCELLED"   # terminal


# Orders in these states are considered by a sweep.
ACTIVE_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.PLACED, OrderStatus.CONFIRMED, OrderStatus.IN_TRANSIT}
)


class Tier(str, Enum):
    """Urgency of an order's delivery deadline.

    Ordered NONE < APPROACHING < URGENT < OVERDUE. Comparison uses the rank,
    not the string value, so `Tier.OVERDUE > Tier.URGENT` holds.
    """

    NONE = "NONE"
    APPROACHING = "APPROACHING"
    URGENT = "URGENT"
    OVERDUE = "OVERDUE"

    @property
    def rank(self) -> int:
        return _TIER_RANKS[self.value]

    @property
    def is_urgent(self) -> bool:
        return self.rank >= _TIER_RANKS["URGENT"]

    def __lt__(self, other):
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank >= other.rank


_TIER_RANKS: dict[str, int] = {"NONE": 0, "APPROACHING": 1, "URGENT": 2, "OVERDUE": 3}


class Channel(str, Enum):
    """Delivery channels for a countdown warning."""

    PUSH = "push"
    SMS = "sms"


# ── Store entities ───────────────────────────────────────────────────


class Order(BaseModel):
    """Read-only view of an order as returned by the order store."""

    id: str = Field(..., min_length=1)
    recipient_id: str = Field(..., min_length=1)  # user to notify (the deliverer)
    status: OrderStatus
    delivery_deadline: AwareDatetime | None = None
    order_number: str | None = None               # human-facing number, e.g. "HC-1042"
    delivery_order_id: str | None = None          # the deliverer's assignment, if any

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class WarningRecord(BaseModel):
    """Highest tier already notified for one order.

    An absent record is equivalent to tier NONE.
    """

    order_id: str
    tier: Tier = Tier.NONE
    last_notified_at: AwareDatetime | None = None
    # Set while a sweep holds the right to dispatch the next tier
    claimed_tier: Tier | None = None
    claimed_until: AwareDatetime | None = None
    claim_token: str | None = None


class DeliveryPreferences(BaseModel):
    """Per-recipient opt-in flags for delivery updates."""

    push_delivery_updates: bool = True
    sms_delivery_updates: bool = False
    phone_number: str | None = None  # SMS needs one


# ── Dispatch payloads ────────────────────────────────────────────────


class DispatchDecision(BaseModel):
    """A tier crossing the engine decided to notify."""

    order_id: str
    recipient_id: str
    tier: Tier
    remaining: timedelta


class NotificationAction(BaseModel):
    """A button shown with the notification."""

    label: str
    action: str


class NotificationMessage(BaseModel):
    """Recipient-facing content of a countdown warning."""

    title: str
    body: str
    urgent: bool = False
    data: dict[str, str | int] = Field(default_factory=dict)
    actions: list[NotificationAction] = Field(default_factory=list)
    channels: list[Channel] = Field(default_factory=lambda: [Channel.PUSH])


class DispatchInput(BaseModel):
    """Everything the notification dispatcher needs for one warning."""

    recipient_id: str
    order_id: str
    tier: Tier
    remaining: timedelta
    order_number: str | None = None
    delivery_order_id: str | None = None


class StoredNotification(BaseModel):
    """In-app notification kept for the recipient's notification list."""

    user_id: str
    type: str
    message: NotificationMessage
    order_id: str


class ChannelResult(BaseModel):
    """Outcome of sending a message over a single channel."""

    channel: Channel
    success: bool
    error: str | None = None


# ── Workflow input / output ──────────────────────────────────────────


class SweepRequest(BaseModel):
    """Input to the sweep activity. `now` comes from workflow.now()."""

    now: AwareDatetime


class SweepResult(BaseModel):
    """Summary of one sweep, returned to the scheduler."""

    dispatched: int = Field(0, ge=0)
    skipped: int = Field(0, ge=0)
    failed: int = Field(0, ge=0)
    aborted: bool = False  # True when the order store could not be read at all
