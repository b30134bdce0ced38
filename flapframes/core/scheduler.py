import random
from datetime import datetime, timedelta, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from flapframes.ai.errors import AllProvidersFailedError
from flapframes.content.generators import GENERATORS, create_generator
from flapframes.content.orchestrator import FrameOrchestrator
from flapframes.core.circuit_breaker import get_circuit_breaker
from flapframes.core.circuit_registry import CircuitState, CircuitType
from flapframes.core.config import settings
from flapframes.core.context import job_context
from flapframes.core.errors import capture_exception
from flapframes.core.logging_config import get_logger

logger = get_logger(__name__)

scheduler = AsyncIOScheduler()


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # sqlite hands back naive datetimes; everything is stored in UTC
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


async def job_probe_tripped_providers(now: Optional[datetime] = None) -> int:
    """
    Move provider circuits that have been off for longer than the reset
    timeout into half_open. Returns the number of circuits put on probation.
    """
    circuit_breaker = get_circuit_breaker()
    now = now or datetime.now(timezone.utc)
    timeout = timedelta(milliseconds=circuit_breaker.reset_timeout_ms)

    probed = 0
    with job_context("probe_tripped_providers"):
        for circuit in await circuit_breaker.get_circuits_by_type(CircuitType.PROVIDER):
            if circuit.state != CircuitState.OFF.value:
                continue
            changed_at = _as_utc(circuit.state_changed_at)
            if changed_at is not None and now - changed_at < timeout:
                continue
            await circuit_breaker.start_half_open(circuit.circuit_id)
            probed += 1

    if probed:
        logger.info("provider circuits put on probation", count=probed)
    return probed


async def job_generate_frame(generator_id: Optional[str] = None) -> None:
    """Run one orchestrator cycle with the given or a random registered generator."""
    generator_id = generator_id or random.choice(list(GENERATORS))
    with job_context("generate_frame"):
        try:
            circuit_breaker = get_circuit_breaker()
            generator = create_generator(generator_id, circuit_breaker=circuit_breaker)
            result = await FrameOrchestrator(circuit_breaker).run(generator)
            if result.blocked:
                logger.info("scheduled generation skipped", generator_id=generator_id, reason=result.block_reason)
            else:
                logger.info("scheduled generation complete", generator_id=generator_id, text=result.content.text)
        except AllProvidersFailedError as e:
            capture_exception(e, context={"generator_id": generator_id, "tier": e.tier})
        except Exception as e:
            capture_exception(e, context={"generator_id": generator_id})


def start_scheduler():
    # max_instances=1 prevents overlapping runs; coalesce collapses missed runs into one
    scheduler.add_job(
        job_probe_tripped_providers,
        IntervalTrigger(seconds=settings.CIRCUIT_PROBE_INTERVAL_SECONDS),
        id="job_probe_tripped_providers",
        max_instances=1,
        misfire_grace_time=60,
        coalesce=True,
        replace_existing=True,
    )
    scheduler.add_job(
        job_generate_frame,
        IntervalTrigger(minutes=settings.GENERATION_INTERVAL_MINUTES),
        id="job_generate_frame",
        max_instances=1,
        misfire_grace_time=300,
        coalesce=True,
        replace_existing=True,
    )
    scheduler.start()
    logger.info("scheduler started", jobs=[job.id for job in scheduler.get_jobs()])
