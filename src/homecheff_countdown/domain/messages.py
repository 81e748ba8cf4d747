"""
Countdown warning messages (Dutch, recipient-facing).

Push is always selected; urgent tiers also go out by SMS. The recipient's
delivery preferences then filter the channel list, and SMS is dropped for
recipients without a phone number.
"""

import math
from datetime import timedelta

from homecheff_countdown.domain.models import (
    Channel,
    DeliveryPreferences,
    DispatchInput,
    NotificationAction,
    NotificationMessage,
    Tier,
)

NOTIFICATION_TYPE = "DELIVERY_COUNTDOWN_WARNING"
DASHBOARD_LINK = "/bezorger/dashboard"
VIEW_DELIVERY = NotificationAction(label="Bekijk opdracht", action="VIEW_DELIVERY")


def _minutes(delta: timedelta) -> int:
    # Round up so "9m01s left" reads as 10 minutes, never as 9.
    return max(0, math.ceil(abs(delta.total_seconds()) / 60))


def _minutes_label(minutes: int) -> str:
    return "1 minuut" if minutes == 1 else f"{minutes} minuten"


def select_channels(tier: Tier, preferences: DeliveryPreferences | None = None) -> list[Channel]:
    channels = [Channel.PUSH]
    if tier.is_urgent:
        channels.append(Channel.SMS)
    if preferences is None:
        return channels
    allowed = {
        Channel.PUSH: preferences.push_delivery_updates,
        Channel.SMS: preferences.sms_delivery_updates and bool(preferences.phone_number),
    }
    return [c for c in channels if allowed[c]]


def build_message(
    dispatch: DispatchInput,
    preferences: DeliveryPreferences | None = None,
) -> NotificationMessage:
    """Compose the warning for one dispatch.

    The order number falls back to the order id when the store has none.
    """
    if dispatch.tier == Tier.NONE:
        raise ValueError("no message exists for tier NONE")

    number = dispatch.order_number or dispatch.order_id
    minutes = _minutes(dispatch.remaining)
    label = _minutes_label(minutes)

    if dispatch.tier == Tier.OVERDUE:
        title = "🚨 Bezorging te laat"
        body = f"Bestelling #{number} had {label} geleden bezorgd moeten zijn. Rond de bezorging zo snel mogelijk af."
        minutes_remaining = -minutes
    elif dispatch.tier == Tier.URGENT:
        title = f"🚨 Urgent: {label} resterend!"
        body = f"Je hebt nog {label} om bestelling #{number} te bezorgen. Haast je!"
        minutes_remaining = minutes
    else:
        title = f"⏰ Waarschuwing: {label} resterend"
        body = f"Je hebt nog {label} om bestelling #{number} te bezorgen."
        minutes_remaining = minutes

    data: dict[str, str | int] = {
        "type": NOTIFICATION_TYPE,
        "orderId": dispatch.order_id,
        "orderNumber": number,
        "tier": dispatch.tier.value,
        "minutesRemaining": minutes_remaining,
        "link": DASHBOARD_LINK,
    }
    if dispatch.delivery_order_id:
        data["deliveryOrderId"] = dispatch.delivery_order_id

    return NotificationMessage(
        title=title,
        body=body,
        urgent=dispatch.tier.is_urgent,
        data=data,
        actions=[VIEW_DELIVERY],
        channels=select_channels(dispatch.tier, preferences),
    )
