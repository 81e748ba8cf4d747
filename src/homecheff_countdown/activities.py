"""
Temporal activities: thin wrappers delegating to the countdown engine.

The sweep touches the order store, the warning store and the notification
dispatcher, so it runs as an activity, outside the deterministic workflow
sandbox. The workflow supplies `now` (from `workflow.now()`), which keeps
the engine free of wall-clock reads.

Per-order failures are absorbed by the engine and reported in the
SweepResult. Only StoreUnavailable (the order list could not be read)
escapes, and Temporal retries the activity according to the workflow's
RetryPolicy.
"""

import logging

from temporalio import activity

from homecheff_countdown.domain.models import SweepRequest, SweepResult
from homecheff_countdown.services.factory import ServiceFactory

logger = logging.getLogger(__name__)


@activity.defn
async def run_countdown_sweep(input: SweepRequest) -> SweepResult:
    """Run one countdown sweep as of `input.now`."""
    attempt = activity.info().attempt
    logger.info("Activity run_countdown_sweep started for %s (attempt %d)", input.now.isoformat(), attempt)
    result = await ServiceFactory.get_engine().run_sweep(input.now)
    logger.info(
        "Activity run_countdown_sweep completed: %d dispatched, %d skipped, %d failed",
        result.dispatched,
        result.skipped,
        result.failed,
    )
    return result
