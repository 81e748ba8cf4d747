"""
Temporal workflow: DeliveryCountdownSweepWorkflow.

One workflow execution is one sweep. A Temporal Schedule (see client.py)
starts it on a fixed interval; the engine itself never self-schedules.

Inside the workflow only deterministic work happens: the sweep time is
taken from `workflow.now()` and handed to the `run_countdown_sweep`
activity, which does all store and dispatcher I/O.
"""

from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

# Pydantic models and config are only used for data and constants, so they
# can bypass the sandbox's import interception.
with workflow.unsafe.imports_passed_through():
    from homecheff_countdown import config
    from homecheff_countdown.activities import run_countdown_sweep
    from homecheff_countdown.domain.models import SweepRequest, SweepResult


@workflow.defn
class DeliveryCountdownSweepWorkflow:
    """Runs a single countdown sweep and returns its SweepResult.

    Supports:
        - **Query** `get_status`: the sweep time and, once finished, the result.
    """

    def __init__(self) -> None:
        self.request: SweepRequest | None = None
        self.result: SweepResult | None = None

    @workflow.query
    def get_status(self) -> dict:
        return {
            "now": self.request.now.isoformat() if self.request else None,
            "finished": self.result is not None,
            "result": self.result.model_dump() if self.result else None,
        }

    @workflow.run
    async def run(self) -> SweepResult:
        self.request = SweepRequest(now=workflow.now())

        # Retries cover the order store being briefly unreachable. Per-order
        # failures never reach this level; the next scheduled sweep retries them.
        retry_policy = RetryPolicy(
            maximum_attempts=3,
            initial_interval=timedelta(seconds=1),
            backoff_coefficient=2.0,
        )
        # A sweep must finish well inside one interval.
        timeout = timedelta(seconds=max(10, config.SWEEP_INTERVAL_SECONDS - 10))

        workflow.logger.info("Starting countdown sweep at %s", self.request.now.isoformat())
        try:
            self.result = await workflow.execute_activity(
                run_countdown_sweep,
                self.request,
                start_to_close_timeout=timeout,
                retry_policy=retry_policy,
            )
        except Exception:
            # Order store unreachable after all retries. Return an aborted
            # result so the scheduled run completes instead of failing.
            workflow.logger.exception("Countdown sweep at %s aborted", self.request.now.isoformat())
            self.result = SweepResult(aborted=True)
            return self.result

        workflow.logger.info(
            "Countdown sweep finished: %d dispatched, %d skipped, %d failed",
            self.result.dispatched,
            self.result.skipped,
            self.result.failed,
        )
        return self.result
