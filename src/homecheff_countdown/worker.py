"""
Temporal worker: polls the countdown task queue.

Registers DeliveryCountdownSweepWorkflow and the run_countdown_sweep
activity. Several workers may poll the same queue; overlapping sweeps are
safe because every tier advance is claimed by compare-and-set in the
warning store.

Run with:
    python -m homecheff_countdown.worker

    # Seed the in-memory order store with a few orders around their deadlines:
    python -m homecheff_countdown.worker --demo
"""

import argparse
import asyncio
import logging
from datetime import datetime, timedelta, timezone

from temporalio.client import Client

# The same data_converter must be used on both the worker AND the client,
# otherwise SweepResult payloads will not deserialize.
from temporalio.contrib.pydantic import pydantic_data_converter
from temporalio.worker import Worker

from homecheff_countdown import config
from homecheff_countdown.activities import run_countdown_sweep
from homecheff_countdown.domain.models import Order, OrderStatus
from homecheff_countdown.services.factory import ServiceFactory
from homecheff_countdown.services.order_store import InMemoryOrderStore
from homecheff_countdown.workflows import DeliveryCountdownSweepWorkflow


def demo_orders(now: datetime) -> list[Order]:
    """A handful of orders spread across the tiers relative to `now`."""
    offsets = [
        ("HC-1001", OrderStatus.CONFIRMED, timedelta(minutes=45)),
        ("HC-1002", OrderStatus.IN_TRANSIT, timedelta(minutes=25)),
        ("HC-1003", OrderStatus.IN_TRANSIT, timedelta(minutes=8)),
        ("HC-1004", OrderStatus.PLACED, timedelta(minutes=-5)),
        ("HC-1005", OrderStatus.DELIVERED, timedelta(minutes=-20)),
    ]
    return [
        Order(
            id=f"order-{number}",
            order_number=number,
            recipient_id=f"deliverer-{i}",
            status=status,
            delivery_deadline=now + offset,
        )
        for i, (number, status, offset) in enumerate(offsets, start=1)
    ]


async def run_worker(args: argparse.Namespace) -> None:
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
    logger = logging.getLogger(__name__)

    if args.demo:
        orders = demo_orders(datetime.now(timezone.utc))
        ServiceFactory.configure(order_store=InMemoryOrderStore(orders))
        logger.info("Seeded %d demo orders", len(orders))

    client = await Client.connect(
        config.TEMPORAL_ADDRESS,
        namespace=config.TEMPORAL_NAMESPACE,
        data_converter=pydantic_data_converter,
    )
    logger.info("Connected to Temporal at %s, starting worker on queue %r", config.TEMPORAL_ADDRESS, config.TASK_QUEUE)

    worker = Worker(
        client,
        task_queue=config.TASK_QUEUE,
        workflows=[DeliveryCountdownSweepWorkflow],
        activities=[run_countdown_sweep],
    )
    await worker.run()


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the delivery countdown worker")
    parser.add_argument("--demo", action="store_true", help="Seed the in-memory order store with demo orders")
    asyncio.run(run_worker(parser.parse_args()))


if __name__ == "__main__":
    main()
