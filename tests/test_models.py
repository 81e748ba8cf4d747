from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from homecheff_countdown.domain.models import Order, OrderStatus, SweepRequest, WarningRecord
from tests.helpers.fakes import T0


def test_order_rejects_naive_deadline():
    with pytest.raises(ValidationError):
        Order(
            id="o",
            recipient_id="deliverer-1",
            status=OrderStatus.IN_TRANSIT,
            delivery_deadline=datetime(2024, 5, 17, 17, 55),
        )


def test_order_keeps_aware_deadline_in_its_zone():
    amsterdam = timezone(timedelta(hours=2))
    order = Order(
        id="o",
        recipient_id="deliverer-1",
        status=OrderStatus.CONFIRMED,
        delivery_deadline=datetime(2024, 5, 17, 20, 30, tzinfo=amsterdam),
    )

    assert order.delivery_deadline - T0 == timedelta(minutes=30)


def test_order_parses_iso_deadline_with_offset():
    order = Order.model_validate(
        {"id": "o", "recipient_id": "r", "status": "PLACED", "delivery_deadline": "2024-05-17T18:15:00Z"}
    )

    assert order.delivery_deadline == T0 + timedelta(minutes=15)


def test_sweep_request_requires_aware_now():
    with pytest.raises(ValidationError):
        SweepRequest(now=datetime(2024, 5, 17, 18, 0))

    assert SweepRequest(now=T0).now == T0


def test_warning_record_rejects_naive_timestamps():
    with pytest.raises(ValidationError):
        WarningRecord(order_id="o", last_notified_at=datetime(2024, 5, 17, 18, 0))
