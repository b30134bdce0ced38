"""
Circuit breaker service.

Two kinds of circuits share one persisted table:

- manual circuits (MASTER, SLEEP_MODE) only change through ``set_circuit_state``
- provider circuits are driven by ``record_provider_failure`` /
  ``record_provider_success``:

      on --(failures >= threshold, or one auth error)--> off
      half_open --(any failure)--> off
      half_open --(HALF_OPEN_ATTEMPTS successes)--> on, counters zeroed
      off --(reset timeout, external scheduler)--> half_open

"Open" follows breaker vocabulary: ``is_circuit_open`` is True exactly when the
state is ``off``, i.e. traffic is blocked.

Every public method fails open. A storage error or a missing row never blocks
traffic and never propagates; see ``flapframes.core.errors.fail_open``.

Counter increments are atomic in the repository, but increment -> read ->
conditional write is not one transaction. Two reporters racing on the same
circuit can trip it one failure late; that is tolerated.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel

from flapframes.ai.errors import ProviderErrorKind
from flapframes.core.circuit_registry import (
    ALL_CIRCUITS,
    DEFAULT_HALF_OPEN_ATTEMPTS,
    DEFAULT_RESET_TIMEOUT_MS,
    CircuitDefinition,
    CircuitState,
    CircuitType,
)
from flapframes.core.errors import ErrorHandler, capture_message, fail_open
from flapframes.core.logging_config import get_logger
from flapframes.models.circuit_breaker_state import CircuitBreakerState
from flapframes.services.circuit_repository import CircuitRepository

logger = get_logger(__name__)


class ProviderCircuitStatus(BaseModel):
    """Provider circuit state plus derived fields for diagnostics."""

    circuit_id: str
    state: CircuitState
    failure_count: int
    success_count: int
    failure_threshold: int
    last_failure_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    state_changed_at: Optional[datetime] = None
    can_attempt: bool
    reset_timeout_ms: int


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _is_authentication_error(error: BaseException) -> bool:
    return getattr(error, "kind", None) is ProviderErrorKind.AUTHENTICATION


class CircuitBreakerService:
    def __init__(
        self,
        repository: CircuitRepository,
        definitions: Optional[List[CircuitDefinition]] = None,
        half_open_attempts: int = DEFAULT_HALF_OPEN_ATTEMPTS,
        reset_timeout_ms: int = DEFAULT_RESET_TIMEOUT_MS,
    ):
        self.repository = repository
        self.definitions = list(definitions if definitions is not None else ALL_CIRCUITS)
        self.half_open_attempts = half_open_attempts
        self.reset_timeout_ms = reset_timeout_ms

    async def initialize(self) -> None:
        """Create a row for every known circuit. Existing rows are left alone."""
        for definition in self.definitions:
            with ErrorHandler("initialize_circuit", context={"circuit_id": definition.circuit_id}, capture=False):
                await self.repository.initialize_circuit(definition)

    # -- manual / generic queries ---------------------------------------------

    @fail_open(default=False, operation="is_circuit_open")
    async def is_circuit_open(self, circuit_id: str) -> bool:
        state = await self.repository.get_state(circuit_id)
        if not state:
            return False
        return state.state == CircuitState.OFF.value

    @fail_open(default=None, operation="set_circuit_state")
    async def set_circuit_state(self, circuit_id: str, state: CircuitState | str) -> None:
        """
        Move any circuit to any state. No transition table is enforced.

        Entering ``half_open`` zeroes the counters so only probation
        successes count toward recovery.
        """
        new_state = CircuitState(state)
        before = await self.repository.get_state(circuit_id)
        if new_state is CircuitState.HALF_OPEN:
            await self.repository.reset_counters(circuit_id)
        await self.repository.set_state(circuit_id, state=new_state, state_changed_at=_now())
        logger.info(
            "circuit state set",
            circuit_id=circuit_id,
            old_state=before.state if before else None,
            new_state=new_state.value,
        )

    @fail_open(default=None, operation="get_circuit_status")
    async def get_circuit_status(self, circuit_id: str) -> Optional[CircuitBreakerState]:
        return await self.repository.get_state(circuit_id)

    @fail_open(default=list, operation="get_all_circuits")
    async def get_all_circuits(self) -> List[CircuitBreakerState]:
        return await self.repository.get_all_states()

    @fail_open(default=list, operation="get_circuits_by_type")
    async def get_circuits_by_type(self, circuit_type: CircuitType | str) -> List[CircuitBreakerState]:
        wanted = CircuitType(circuit_type).value
        return [c for c in await self.repository.get_all_states() if c.circuit_type == wanted]

    # -- provider state machine -----------------------------------------------

    @fail_open(default=None, operation="record_provider_failure")
    async def record_provider_failure(self, circuit_id: str, error: BaseException) -> None:
        failure_count = await self.repository.record_failure(circuit_id)

        state = await self.repository.get_state(circuit_id)
        if not state:
            return

        # A bad or revoked key will not heal by retrying
        threshold = 1 if _is_authentication_error(error) else state.failure_threshold

        should_trip = state.state == CircuitState.HALF_OPEN.value or (
            state.state == CircuitState.ON.value and failure_count >= threshold
        )
        if not should_trip:
            return

        await self.repository.set_state(circuit_id, state=CircuitState.OFF, state_changed_at=_now())
        capture_message(
            "provider circuit tripped",
            level="warning",
            context={
                "circuit_id": circuit_id,
                "old_state": state.state,
                "new_state": CircuitState.OFF.value,
                "failure_count": failure_count,
                "threshold": threshold,
                "error_type": type(error).__name__,
            },
            tags={"circuit_id": circuit_id},
        )

    @fail_open(default=None, operation="record_provider_success")
    async def record_provider_success(self, circuit_id: str) -> None:
        success_count = await self.repository.record_success(circuit_id)

        state = await self.repository.get_state(circuit_id)
        if not state:
            return

        if state.state == CircuitState.HALF_OPEN.value and success_count >= self.half_open_attempts:
            await self.repository.set_state(circuit_id, state=CircuitState.ON, state_changed_at=_now())
            await self.repository.reset_counters(circuit_id)
            logger.info(
                "provider circuit recovered",
                circuit_id=circuit_id,
                old_state=CircuitState.HALF_OPEN.value,
                new_state=CircuitState.ON.value,
                success_count=success_count,
            )

    @fail_open(default=True, operation="is_provider_available")
    async def is_provider_available(self, circuit_id: str) -> bool:
        state = await self.repository.get_state(circuit_id)
        if not state:
            return True
        return state.state != CircuitState.OFF.value

    @fail_open(default=None, operation="get_provider_status")
    async def get_provider_status(self, circuit_id: str) -> Optional[ProviderCircuitStatus]:
        state = await self.repository.get_state(circuit_id)
        if not state:
            return None

        return ProviderCircuitStatus(
            circuit_id=state.circuit_id,
            state=CircuitState(state.state),
            failure_count=state.failure_count,
            success_count=state.success_count,
            failure_threshold=state.failure_threshold,
            last_failure_at=state.last_failure_at,
            last_success_at=state.last_success_at,
            state_changed_at=state.state_changed_at,
            can_attempt=state.state != CircuitState.OFF.value,
            reset_timeout_ms=self.reset_timeout_ms,
        )

    @fail_open(default=None, operation="start_half_open")
    async def start_half_open(self, circuit_id: str) -> None:
        """
        Put a tripped provider circuit on probation.

        Counters are zeroed first so only successes earned during probation
        count toward recovery. Driven by the scheduler once the reset timeout
        has elapsed; the service never starts probation on its own.
        """
        await self.repository.reset_counters(circuit_id)
        await self.repository.set_state(circuit_id, state=CircuitState.HALF_OPEN, state_changed_at=_now())
        logger.info(
            "provider circuit on probation",
            circuit_id=circuit_id,
            old_state=CircuitState.OFF.value,
            new_state=CircuitState.HALF_OPEN.value,
        )

    @fail_open(default=None, operation="reset_provider_circuit")
    async def reset_provider_circuit(self, circuit_id: str) -> None:
        """Force a provider circuit back to ``on`` with both counters zeroed."""
        await self.repository.set_state(circuit_id, state=CircuitState.ON, state_changed_at=_now())
        await self.repository.reset_counters(circuit_id)
        logger.info("provider circuit reset", circuit_id=circuit_id)


def build_circuit_breaker(engine=None) -> CircuitBreakerService:
    """Service wired to the configured database and circuit tuning."""
    from flapframes import db
    from flapframes.core.config import settings
    from flapframes.services.circuit_repository import SQLModelCircuitRepository

    definitions = [
        replace(d, failure_threshold=settings.CIRCUIT_FAILURE_THRESHOLD)
        if d.circuit_type is CircuitType.PROVIDER
        else d
        for d in ALL_CIRCUITS
    ]
    return CircuitBreakerService(
        SQLModelCircuitRepository(engine or db.engine),
        definitions=definitions,
        half_open_attempts=settings.CIRCUIT_HALF_OPEN_ATTEMPTS,
        reset_timeout_ms=settings.CIRCUIT_RESET_TIMEOUT_SECONDS * 1000,
    )


_service: Optional[CircuitBreakerService] = None


def get_circuit_breaker() -> CircuitBreakerService:
    """Process-wide service bound to the configured database."""
    global _service
    if _service is None:
        _service = build_circuit_breaker()
    return _service
