"""
CLI client: runs a countdown sweep once, or manages the sweep schedule.

The schedule is the "external scheduler" of the countdown engine: a
Temporal Schedule that starts DeliveryCountdownSweepWorkflow every
SWEEP_INTERVAL_SECONDS. When a sweep is still running at the next tick the
new run is skipped (ScheduleOverlapPolicy.SKIP).

Usage:
    # Run one sweep now and print its SweepResult:
    python -m homecheff_countdown.client once

    # Same, and query the workflow while it runs:
    python -m homecheff_countdown.client once --query

    # Create / remove the recurring schedule:
    python -m homecheff_countdown.client schedule
    python -m homecheff_countdown.client schedule --every 30
    python -m homecheff_countdown.client unschedule
"""

import argparse
import asyncio
import logging
import uuid
from datetime import timedelta

from temporalio.client import (
    Client,
    Schedule,
    ScheduleActionStartWorkflow,
    ScheduleIntervalSpec,
    SchedulePolicy,
    ScheduleOverlapPolicy,
    ScheduleSpec,
)
from temporalio.contrib.pydantic import pydantic_data_converter

from homecheff_countdown import config
from homecheff_countdown.workflows import DeliveryCountdownSweepWorkflow

SCHEDULE_ID = "delivery-countdown-sweep"

logger = logging.getLogger(__name__)


async def run_once(client: Client, args: argparse.Namespace) -> None:
    workflow_id = f"{SCHEDULE_ID}-{uuid.uuid4().hex[:12]}"
    logger.info("Starting workflow %s", workflow_id)

    handle = await client.start_workflow(
        DeliveryCountdownSweepWorkflow.run,
        id=workflow_id,
        task_queue=config.TASK_QUEUE,
    )
    if args.query:
        status = await handle.query(DeliveryCountdownSweepWorkflow.get_status)
        logger.info("Query result: %s", status)

    result = await handle.result()
    print(result.model_dump_json(indent=2))


async def create_schedule(client: Client, args: argparse.Namespace) -> None:
    every = timedelta(seconds=args.every)
    await client.create_schedule(
        SCHEDULE_ID,
        Schedule(
            action=ScheduleActionStartWorkflow(
                DeliveryCountdownSweepWorkflow.run,
                id=SCHEDULE_ID,
                task_queue=config.TASK_QUEUE,
            ),
            spec=ScheduleSpec(intervals=[ScheduleIntervalSpec(every=every)]),
            policy=SchedulePolicy(overlap=ScheduleOverlapPolicy.SKIP),
        ),
    )
    logger.info("Created schedule %s, sweeping every %s", SCHEDULE_ID, every)


async def delete_schedule(client: Client, args: argparse.Namespace) -> None:
    await client.get_schedule_handle(SCHEDULE_ID).delete()
    logger.info("Deleted schedule %s", SCHEDULE_ID)


COMMANDS = {
    "once": run_once,
    "schedule": create_schedule,
    "unschedule": delete_schedule,
}


async def run_client(args: argparse.Namespace) -> None:
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
    client = await Client.connect(
        config.TEMPORAL_ADDRESS,
        namespace=config.TEMPORAL_NAMESPACE,
        data_converter=pydantic_data_converter,
    )
    await COMMANDS[args.command](client, args)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run or schedule delivery countdown sweeps via Temporal")
    parser.add_argument("command", choices=sorted(COMMANDS), help="What to do")
    parser.add_argument("--query", action="store_true", help="Query workflow status once after starting (once)")
    parser.add_argument(
        "--every",
        type=int,
        default=config.SWEEP_INTERVAL_SECONDS,
        help="Sweep interval in seconds (schedule)",
    )
    asyncio.run(run_client(parser.parse_args()))


if __name__ == "__main__":
    main()
