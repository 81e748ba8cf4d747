"""
Notification service facade.

Turns a dispatch into a Dutch countdown warning and sends it over the
recipient's channels (push, plus SMS for urgent tiers). In production the
channel senders would call Pusher and an SMS gateway; here they simulate
the call with a short sleep and keep what they sent in an outbox.

Delivery is at-least-once: the engine may call `dispatch` twice for the same
(order, tier) after a crash between dispatch and persist.
"""

import asyncio
import logging
from typing import Protocol

from homecheff_countdown.domain.messages import build_message
from homecheff_countdown.domain.models import (
    Channel,
    ChannelResult,
    DeliveryPreferences,
    DispatchInput,
    NotificationMessage,
    StoredNotification,
)
from homecheff_countdown.errors import DispatchFailure

logger = logging.getLogger(__name__)

# Type under which the warning appears in the recipient's notification list
STORED_TYPE = "DELIVERY_WARNING"


class NotificationDispatcher(Protocol):
    """Anything that can deliver a countdown warning to a recipient."""

    async def dispatch(self, input: DispatchInput) -> list[ChannelResult]: ...


class NotificationService:
    """Sends countdown warnings per channel.

    Each channel is attempted independently. DispatchFailure is raised only
    when every selected channel failed; a partial success counts as sent.
    A sent warning is also kept as an in-app notification, even for
    recipients who opted out of every channel.
    """

    def __init__(
        self,
        preferences: dict[str, DeliveryPreferences] | None = None,
        latency: float = 0.1,
    ) -> None:
        self.preferences: dict[str, DeliveryPreferences] = preferences or {}
        self.latency = latency
        self.outbox: list[tuple[str, Channel, NotificationMessage]] = []
        self.notifications: list[StoredNotification] = []

    def set_preferences(self, recipient_id: str, preferences: DeliveryPreferences) -> None:
        self.preferences[recipient_id] = preferences

    async def dispatch(self, input: DispatchInput) -> list[ChannelResult]:
        message = build_message(input, self.preferences.get(input.recipient_id))
        if not message.channels:
            logger.info(
                "Recipient %s opted out of delivery updates; %s warning for order %s not sent",
                input.recipient_id,
                input.tier.value,
                input.order_id,
            )
            self._store(input, message)
            return []

        results: list[ChannelResult] = []
        for channel in message.channels:
            try:
                await self._send(channel, input.recipient_id, message)
                results.append(ChannelResult(channel=channel, success=True))
            except Exception as exc:
                logger.warning("%s notification failed for order %s: %s", channel.value, input.order_id, exc)
                results.append(ChannelResult(channel=channel, success=False, error=str(exc)))

        if not any(r.success for r in results):
            reasons = "; ".join(f"{r.channel.value}: {r.error}" for r in results)
            raise DispatchFailure(input.order_id, reasons)

        self._store(input, message)

        logger.info(
            "Sent %s warning for order %s to %s via %s",
            input.tier.value,
            input.order_id,
            input.recipient_id,
            ", ".join(r.channel.value for r in results if r.success),
        )
        return results

    def _store(self, input: DispatchInput, message: NotificationMessage) -> None:
        # Called only once the warning counts as sent.
        self.notifications.append(
            StoredNotification(user_id=input.recipient_id, type=STORED_TYPE, message=message, order_id=input.order_id)
        )

    async def _send(self, channel: Channel, recipient_id: str, message: NotificationMessage) -> None:
        if channel == Channel.SMS:
            await self.send_sms(recipient_id, message)
        else:
            await self.send_push(recipient_id, message)

    async def send_push(self, recipient_id: str, message: NotificationMessage) -> None:
        await asyncio.sleep(self.latency)  # Simulate network latency
        self.outbox.append((recipient_id, Channel.PUSH, message))

    async def send_sms(self, recipient_id: str, message: NotificationMessage) -> None:
        await asyncio.sleep(self.latency)
        self.outbox.append((recipient_id, Channel.SMS, message))
