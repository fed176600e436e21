import asyncio
import structlog
from shared.errors import ServiceUnavailableError
from shared.observability import bites_saga_compensation_total

logger = structlog.get_logger(__name__)

class StepTimeoutError(ServiceUnavailableError):
    """A step overran its deadline; its effect may or may not have landed."""


class SagaStep:
    def __init__(self, name, action, compensation=None):
        self.name = name
        self.action = action
        self.compensation = compensation

class SagaOrchestrator:
    def __init__(self, timeout: float | None = None, retries: int = 0):
        self.steps = []
        self.timeout = timeout
        self.retries = retries

    def add_step(self, name: str, action, compensation=None):
        """Builder pattern to add a step and its rollback compensation."""
        self.steps.append(SagaStep(name, action, compensation))
        return self

    async def _run_action(self, step: SagaStep, ctx: dict):
        """One attempt plus `retries` more, only for ServiceUnavailableError.

        A timeout is not retried: the step's effect may still land, so the
        step is compensated as if it had run.
        """
        for attempt in range(self.retries + 1):
            try:
                if self.timeout is None:
                    return await step.action(ctx)
                return await asyncio.wait_for(step.action(ctx), self.timeout)
            except asyncio.TimeoutError as e:
                raise StepTimeoutError(detail=f"Step '{step.name}' timed out") from e
            except ServiceUnavailableError:
                if attempt == self.retries:
                    raise
                logger.warning("saga_step_retry", step=step.name, attempt=attempt + 1)

    async def execute(self, ctx: dict):
        """Executes steps sequentially. Triggers rollback on any exception."""
        executed_steps = []
        step = None
        try:
            for step in self.steps:
                try:
                    await self._run_action(step, ctx)
                except StepTimeoutError:
                    # Possibly applied, so it is compensated with the rest
                    executed_steps.append(step)
                    raise
                executed_steps.append(step)
            return ctx
        except Exception as e:
            logger.error("saga_step_failed", step=step.name if step else None, error=str(e))
            ctx["error"] = e
            await self._rollback(executed_steps, ctx)
            raise

    async def _rollback(self, executed_steps: list, ctx: dict):
        """Executes compensations in reverse order. Wraps each in a try/except."""
        logger.info("saga_rollback_started", steps=[s.name for s in executed_steps])
        for step in reversed(executed_steps):
            if step.compensation:
                try:
                    await step.compensation(ctx)
                    logger.info("saga_compensation_succeeded", step=step.name)
                    bites_saga_compensation_total.labels(step_name=step.name).inc()
                except Exception as ce:
                    # A failing compensation MUST NOT block other compensations
                    logger.critical(
                        "saga_compensation_failed",
                        step=step.name,
                        error=str(ce),
                        note="Manual intervention may be required",
                    )
