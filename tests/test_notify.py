import asyncio
from datetime import timedelta

import pytest

from homecheff_countdown.domain.models import Channel, DeliveryPreferences, DispatchInput, Tier
from homecheff_countdown.errors import DispatchFailure
from homecheff_countdown.services.notify import STORED_TYPE, NotificationService


def _dispatch(tier: Tier, recipient_id: str = "deliverer-1") -> DispatchInput:
    return DispatchInput(
        recipient_id=recipient_id,
        order_id="order-9",
        tier=tier,
        remaining=timedelta(minutes=4),
        order_number="HC-9",
    )


class SmsDownService(NotificationService):
    async def send_sms(self, recipient_id, message):
        raise ConnectionError("sms gateway unreachable")


class AllDownService(SmsDownService):
    async def send_push(self, recipient_id, message):
        raise ConnectionError("pusher unreachable")


def test_urgent_warning_goes_out_by_push_and_sms():
    service = NotificationService(latency=0)

    results = asyncio.run(service.dispatch(_dispatch(Tier.URGENT)))

    assert [r.channel for r in results] == [Channel.PUSH, Channel.SMS]
    assert all(r.success for r in results)
    assert [(rid, ch) for rid, ch, _ in service.outbox] == [
        ("deliverer-1", Channel.PUSH),
        ("deliverer-1", Channel.SMS),
    ]


def test_preferences_filter_channels():
    service = NotificationService(latency=0)
    service.set_preferences("deliverer-1", DeliveryPreferences(sms_delivery_updates=False))

    asyncio.run(service.dispatch(_dispatch(Tier.OVERDUE)))

    assert [ch for _, ch, _ in service.outbox] == [Channel.PUSH]


def test_opted_out_recipient_counts_as_handled():
    service = NotificationService(
        preferences={"deliverer-1": DeliveryPreferences(push_delivery_updates=False)},
        latency=0,
    )

    results = asyncio.run(service.dispatch(_dispatch(Tier.APPROACHING)))

    assert results == []
    assert service.outbox == []


def test_partial_channel_failure_still_succeeds():
    service = SmsDownService(latency=0)

    results = asyncio.run(service.dispatch(_dispatch(Tier.URGENT)))

    assert [(r.channel, r.success) for r in results] == [(Channel.PUSH, True), (Channel.SMS, False)]
    assert "sms gateway unreachable" in results[1].error


def test_all_channels_failing_raises_dispatch_failure():
    service = AllDownService(latency=0)

    with pytest.raises(DispatchFailure) as excinfo:
        asyncio.run(service.dispatch(_dispatch(Tier.URGENT)))

    assert excinfo.value.order_id == "order-9"
    assert "pusher unreachable" in excinfo.value.reason
    assert service.notifications == []


def test_sent_warning_is_kept_as_in_app_notification():
    service = NotificationService(latency=0)

    asyncio.run(service.dispatch(_dispatch(Tier.URGENT)))

    assert len(service.notifications) == 1
    stored = service.notifications[0]
    assert stored.type == STORED_TYPE == "DELIVERY_WARNING"
    assert stored.user_id == "deliverer-1"
    assert stored.order_id == "order-9"
    assert stored.message.title.startswith("🚨 Urgent")


def test_opted_out_recipient_still_gets_in_app_notification():
    service = NotificationService(
        preferences={"deliverer-1": DeliveryPreferences(push_delivery_updates=False)},
        latency=0,
    )

    asyncio.run(service.dispatch(_dispatch(Tier.OVERDUE)))

    assert [n.type for n in service.notifications] == ["DELIVERY_WARNING"]


def test_sms_needs_a_phone_number():
    service = NotificationService(
        preferences={
            "deliverer-1": DeliveryPreferences(sms_delivery_updates=True),
            "deliverer-2": DeliveryPreferences(sms_delivery_updates=True, phone_number="+31612345678"),
        },
        latency=0,
    )

    async def scenario():
        await service.dispatch(_dispatch(Tier.URGENT, recipient_id="deliverer-1"))
        await service.dispatch(_dispatch(Tier.URGENT, recipient_id="deliverer-2"))

    asyncio.run(scenario())

    assert [(rid, ch) for rid, ch, _ in service.outbox] == [
        ("deliverer-1", Channel.PUSH),
        ("deliverer-2", Channel.PUSH),
        ("deliverer-2", Channel.SMS),
    ]
