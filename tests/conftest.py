from datetime import datetime

import pytest

from homecheff_countdown.engine import DeliveryCountdownEngine
from homecheff_countdown.services.factory import ServiceFactory
from homecheff_countdown.services.order_store import InMemoryOrderStore
from homecheff_countdown.services.warning_store import InMemoryWarningStore
from tests.helpers.fakes import T0, RecordingDispatcher


@pytest.fixture
def now() -> datetime:
    return T0


@pytest.fixture
def order_store() -> InMemoryOrderStore:
    return InMemoryOrderStore()


@pytest.fixture
def warning_store() -> InMemoryWarningStore:
    return InMemoryWarningStore()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def engine(order_store, warning_store, dispatcher) -> DeliveryCountdownEngine:
    return DeliveryCountdownEngine(order_store, warning_store, dispatcher, call_timeout=1.0)


@pytest.fixture(autouse=True)
def reset_factory():
    # ServiceFactory caches at class level; keep tests from sharing stores.
    ServiceFactory.reset()
    yield
    ServiceFactory.reset()
