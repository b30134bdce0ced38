"""
Durable storage for circuit breaker state.

``CircuitRepository`` is the contract the breaker service depends on. Counter
updates are a single increment-and-return so concurrent reporters cannot
lose increments; the follow-up state read/write in the service is still
sequential and may interleave (accepted, see the service docs).
"""

import asyncio
import functools
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol, TypeVar

import anyio
from sqlalchemy import update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from flapframes.core.circuit_registry import DEFAULT_FAILURE_THRESHOLD, CircuitDefinition, CircuitState
from flapframes.core.logging_config import get_logger
from flapframes.models.circuit_breaker_state import CircuitBreakerState, utc_now

logger = get_logger(__name__)

T = TypeVar("T")


class CircuitRepository(Protocol):
    async def initialize_circuit(self, definition: CircuitDefinition) -> None: ...

    async def get_state(self, circuit_id: str) -> Optional[CircuitBreakerState]: ...

    async def set_state(
        self,
        circuit_id: str,
        *,
        state: Optional[CircuitState] = None,
        state_changed_at: Optional[datetime] = None,
    ) -> None: ...

    async def get_all_states(self) -> List[CircuitBreakerState]: ...

    async def record_failure(self, circuit_id: str) -> int: ...

    async def record_success(self, circuit_id: str) -> int: ...

    async def reset_counters(self, circuit_id: str) -> None: ...


def _new_row(definition: CircuitDefinition) -> CircuitBreakerState:
    return CircuitBreakerState(
        circuit_id=definition.circuit_id,
        circuit_type=definition.circuit_type.value,
        state=definition.default_state.value,
        default_state=definition.default_state.value,
        description=definition.description or None,
        failure_threshold=definition.failure_threshold or DEFAULT_FAILURE_THRESHOLD,
        failure_count=0,
        success_count=0,
    )


class SQLModelCircuitRepository:
    """
    Repository backed by the ``circuit_breaker_state`` table.

    Sessions are synchronous; every call runs in a worker thread so the event
    loop keeps serving requests while the database works. Errors propagate:
    the service decides what the safe default is.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    async def _run(self, func: Callable[..., T], *args) -> T:
        return await anyio.to_thread.run_sync(functools.partial(func, *args))

    # -- sync implementations -------------------------------------------------

    def _initialize_circuit(self, definition: CircuitDefinition) -> None:
        with Session(self.engine) as session:
            existing = session.exec(
                select(CircuitBreakerState).where(CircuitBreakerState.circuit_id == definition.circuit_id)
            ).first()
            if existing:
                return
            session.add(_new_row(definition))
            try:
                session.commit()
            except IntegrityError:
                # Another process inserted the row first
                session.rollback()

    def _get_state(self, circuit_id: str) -> Optional[CircuitBreakerState]:
        with Session(self.engine) as session:
            return session.exec(
                select(CircuitBreakerState).where(CircuitBreakerState.circuit_id == circuit_id)
            ).first()

    def _get_all_states(self) -> List[CircuitBreakerState]:
        with Session(self.engine) as session:
            return list(session.exec(select(CircuitBreakerState).order_by(col(CircuitBreakerState.id))).all())

    def _set_state(self, circuit_id: str, values: Dict) -> None:
        values["updated_at"] = utc_now()
        with Session(self.engine) as session:
            session.execute(
                update(CircuitBreakerState)
                .where(col(CircuitBreakerState.circuit_id) == circuit_id)
                .values(**values)
            )
            session.commit()

    def _increment(self, circuit_id: str, counter: str, stamp: str) -> int:
        column = getattr(CircuitBreakerState, counter)
        now = utc_now()
        with Session(self.engine) as session:
            row = session.execute(
                update(CircuitBreakerState)
                .where(col(CircuitBreakerState.circuit_id) == circuit_id)
                .values({counter: column + 1, stamp: now, "updated_at": now})
                .returning(column)
            ).first()
            session.commit()
        return row[0] if row else 0

    # -- async contract ---------------------------------------------------------

    async def initialize_circuit(self, definition: CircuitDefinition) -> None:
        await self._run(self._initialize_circuit, definition)

    async def get_state(self, circuit_id: str) -> Optional[CircuitBreakerState]:
        return await self._run(self._get_state, circuit_id)

    async def set_state(
        self,
        circuit_id: str,
        *,
        state: Optional[CircuitState] = None,
        state_changed_at: Optional[datetime] = None,
    ) -> None:
        values: Dict = {}
        if state is not None:
            values["state"] = CircuitState(state).value
        if state_changed_at is not None:
            values["state_changed_at"] = state_changed_at
        await self._run(self._set_state, circuit_id, values)

    async def get_all_states(self) -> List[CircuitBreakerState]:
        return await self._run(self._get_all_states)

    async def record_failure(self, circuit_id: str) -> int:
        return await self._run(self._increment, circuit_id, "failure_count", "last_failure_at")

    async def record_success(self, circuit_id: str) -> int:
        return await self._run(self._increment, circuit_id, "success_count", "last_success_at")

    async def reset_counters(self, circuit_id: str) -> None:
        await self._run(self._set_state, circuit_id, {"failure_count": 0, "success_count": 0})


class InMemoryCircuitRepository:
    """
    Dict-backed repository for tests and database-less runs.

    All mutations happen under one ``asyncio.Lock``; reads hand out copies so
    callers cannot mutate stored rows.
    """

    def __init__(self):
        self._rows: Dict[str, CircuitBreakerState] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def _copy(row: CircuitBreakerState) -> CircuitBreakerState:
        return CircuitBreakerState(**row.model_dump())

    async def initialize_circuit(self, definition: CircuitDefinition) -> None:
        async with self._lock:
            if definition.circuit_id not in self._rows:
                row = _new_row(definition)
                row.id = len(self._rows) + 1
                self._rows[definition.circuit_id] = row

    async def get_state(self, circuit_id: str) -> Optional[CircuitBreakerState]:
        row = self._rows.get(circuit_id)
        return self._copy(row) if row else None

    async def set_state(
        self,
        circuit_id: str,
        *,
        state: Optional[CircuitState] = None,
        state_changed_at: Optional[datetime] = None,
    ) -> None:
        async with self._lock:
            row = self._rows.get(circuit_id)
            if not row:
                return
            if state is not None:
                row.state = CircuitState(state).value
            if state_changed_at is not None:
                row.state_changed_at = state_changed_at
            row.updated_at = utc_now()

    async def get_all_states(self) -> List[CircuitBreakerState]:
        return [self._copy(row) for row in self._rows.values()]

    async def record_failure(self, circuit_id: str) -> int:
        async with self._lock:
            row = self._rows.get(circuit_id)
            if not row:
                return 0
            row.failure_count += 1
            row.last_failure_at = row.updated_at = utc_now()
            return row.failure_count

    async def record_success(self, circuit_id: str) -> int:
        async with self._lock:
            row = self._rows.get(circuit_id)
            if not row:
                return 0
            row.success_count += 1
            row.last_success_at = row.updated_at = utc_now()
            return row.success_count

    async def reset_counters(self, circuit_id: str) -> None:
        async with self._lock:
            row = self._rows.get(circuit_id)
            if row:
                row.failure_count = 0
                row.success_count = 0
                row.updated_at = utc_now()
