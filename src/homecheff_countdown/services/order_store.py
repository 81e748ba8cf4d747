"""
Order store facade.

In HomeCheff the orders live in the marketplace database. The engine only
ever reads them, through `OrderStore.list_eligible_orders`. The in-memory
implementation backs the worker in development and the test suite.
"""

import asyncio
import logging
from datetime import datetime
from typing import Protocol

from homecheff_countdown.domain.models import Order, OrderStatus
from homecheff_countdown.errors import StoreUnavailable

logger = logging.getLogger(__name__)


class OrderStore(Protocol):
    """Read access to orders with an active delivery window."""

    async def list_eligible_orders(self, now: datetime) -> list[Order]: ...


class InMemoryOrderStore:
    """Keeps orders in a dict keyed by order id.

    `available = False` makes every read raise StoreUnavailable, which is
    how an unreachable database surfaces to the engine.
    """

    def __init__(self, orders: list[Order] | None = None, latency: float = 0.0) -> None:
        self._orders: dict[str, Order] = {o.id: o for o in orders or []}
        self.latency = latency
        self.available = True

    def add(self, order: Order) -> None:
        self._orders[order.id] = order

    def update_status(self, order_id: str, status: OrderStatus) -> Order:
        order = self._orders[order_id].model_copy(update={"status": status})
        self._orders[order_id] = order
        return order

    async def list_eligible_orders(self, now: datetime) -> list[Order]:
        if self.latency:
            await asyncio.sleep(self.latency)
        if not self.available:
            raise StoreUnavailable("order store is unavailable")
        orders = [o for o in self._orders.values() if o.is_active and o.delivery_deadline is not None]
        logger.debug("Found %d eligible orders of %d at %s", len(orders), len(self._orders), now.isoformat())
        return orders
