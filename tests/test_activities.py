import asyncio
from datetime import timedelta

import pytest
from temporalio.testing import ActivityEnvironment

from homecheff_countdown.activities import run_countdown_sweep
from homecheff_countdown.domain.models import SweepRequest, SweepResult, Tier
from homecheff_countdown.errors import StoreUnavailable
from homecheff_countdown.services.factory import ServiceFactory
from homecheff_countdown.services.order_store import InMemoryOrderStore
from homecheff_countdown.services.warning_store import InMemoryWarningStore
from tests.helpers.fakes import T0, RecordingDispatcher, make_order


def _run(request: SweepRequest) -> SweepResult:
    return asyncio.run(ActivityEnvironment().run(run_countdown_sweep, request))


def test_activity_runs_a_sweep_through_the_factory():
    orders = InMemoryOrderStore([make_order("a", timedelta(minutes=5)), make_order("b", timedelta(hours=3))])
    warnings = InMemoryWarningStore()
    dispatcher = RecordingDispatcher()
    ServiceFactory.configure(order_store=orders, warning_store=warnings, dispatcher=dispatcher)

    result = _run(SweepRequest(now=T0))

    assert result == SweepResult(dispatched=1, skipped=1, failed=0)
    assert dispatcher.tiers_for("a") == ["URGENT"]
    assert warnings.snapshot()["a"].tier == Tier.URGENT


def test_activity_propagates_unreachable_order_store():
    orders = InMemoryOrderStore([make_order("a", timedelta(minutes=5))])
    orders.available = False
    ServiceFactory.configure(order_store=orders, dispatcher=RecordingDispatcher())

    with pytest.raises(StoreUnavailable):
        _run(SweepRequest(now=T0))


def test_factory_builds_engine_from_config():
    engine = ServiceFactory.get_engine()

    assert engine is ServiceFactory.get_engine()
    assert engine.thresholds.approaching == timedelta(minutes=30)
    assert engine.thresholds.urgent == timedelta(minutes=10)
    assert engine.order_store is ServiceFactory.get_order_store()

