"""
Tests for circuit repositories.

Both implementations are run against the same contract; the SQLModel one
additionally checks what ends up in the table.
"""

from datetime import datetime, timezone

import pytest
from sqlmodel import Session, select

from flapframes.core.circuit_registry import (
    ALL_CIRCUITS,
    MASTER,
    PROVIDER_OPENAI,
    CircuitState,
    get_definition,
)
from flapframes.models import CircuitBreakerState
from flapframes.services.circuit_repository import InMemoryCircuitRepository, SQLModelCircuitRepository


@pytest.fixture(params=["memory", "sql"])
def repository(request, test_engine):
    if request.param == "memory":
        return InMemoryCircuitRepository()
    return SQLModelCircuitRepository(test_engine)


async def _initialize_all(repository):
    for definition in ALL_CIRCUITS:
        await repository.initialize_circuit(definition)


class TestRepositoryContract:
    """Shared behavior of every CircuitRepository."""

    @pytest.mark.asyncio
    async def test_initialize_creates_rows_from_definitions(self, repository):
        await _initialize_all(repository)

        master = await repository.get_state(MASTER)
        openai = await repository.get_state(PROVIDER_OPENAI)

        assert master.circuit_type == "manual"
        assert master.state == "on"
        assert master.default_state == "on"
        assert openai.circuit_type == "provider"
        assert openai.failure_threshold == 5
        assert openai.failure_count == 0
        assert openai.success_count == 0

    @pytest.mark.asyncio
    async def test_initialize_is_insert_if_absent(self, repository):
        await repository.initialize_circuit(get_definition(MASTER))
        await repository.set_state(MASTER, state=CircuitState.OFF)

        await repository.initialize_circuit(get_definition(MASTER))

        assert (await repository.get_state(MASTER)).state == "off"
        assert len(await repository.get_all_states()) == 1

    @pytest.mark.asyncio
    async def test_get_state_missing(self, repository):
        assert await repository.get_state("NOPE") is None

    @pytest.mark.asyncio
    async def test_get_all_states_in_insertion_order(self, repository):
        await _initialize_all(repository)

        ids = [row.circuit_id for row in await repository.get_all_states()]

        assert ids == [d.circuit_id for d in ALL_CIRCUITS]

    @pytest.mark.asyncio
    async def test_counters_increment_and_return(self, repository):
        await _initialize_all(repository)

        assert await repository.record_failure(PROVIDER_OPENAI) == 1
        assert await repository.record_failure(PROVIDER_OPENAI) == 2
        assert await repository.record_success(PROVIDER_OPENAI) == 1

        row = await repository.get_state(PROVIDER_OPENAI)
        assert row.failure_count == 2
        assert row.success_count == 1
        assert row.last_failure_at is not None
        assert row.last_success_at is not None

    @pytest.mark.asyncio
    async def test_counters_on_missing_circuit(self, repository):
        assert await repository.record_failure("NOPE") == 0
        assert await repository.record_success("NOPE") == 0

    @pytest.mark.asyncio
    async def test_set_state_is_partial(self, repository):
        await _initialize_all(repository)
        changed_at = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

        await repository.set_state(PROVIDER_OPENAI, state=CircuitState.HALF_OPEN, state_changed_at=changed_at)
        await repository.set_state(PROVIDER_OPENAI, state=CircuitState.OFF)

        row = await repository.get_state(PROVIDER_OPENAI)
        assert row.state == "off"
        assert row.state_changed_at.replace(tzinfo=timezone.utc) == changed_at

    @pytest.mark.asyncio
    async def test_reset_counters(self, repository):
        await _initialize_all(repository)
        await repository.record_failure(PROVIDER_OPENAI)
        await repository.record_success(PROVIDER_OPENAI)

        await repository.reset_counters(PROVIDER_OPENAI)

        row = await repository.get_state(PROVIDER_OPENAI)
        assert row.failure_count == 0
        assert row.success_count == 0

    @pytest.mark.asyncio
    async def test_reads_are_copies(self, repository):
        await _initialize_all(repository)

        row = await repository.get_state(MASTER)
        row.state = "off"

        assert (await repository.get_state(MASTER)).state == "on"


class TestSQLModelRepository:
    """Table-level checks for the SQLModel repository."""

    @pytest.mark.asyncio
    async def test_rows_persist_in_table(self, sql_repository, test_engine):
        await _initialize_all(sql_repository)
        await sql_repository.record_failure(PROVIDER_OPENAI)

        with Session(test_engine) as session:
            rows = session.exec(select(CircuitBreakerState)).all()
            openai = session.exec(
                select(CircuitBreakerState).where(CircuitBreakerState.circuit_id == PROVIDER_OPENAI)
            ).one()

        assert len(rows) == len(ALL_CIRCUITS)
        assert openai.failure_count == 1

    @pytest.mark.asyncio
    async def test_updated_at_moves_on_write(self, sql_repository):
        await _initialize_all(sql_repository)
        before = (await sql_repository.get_state(MASTER)).updated_at

        await sql_repository.set_state(MASTER, state=CircuitState.OFF)

        assert (await sql_repository.get_state(MASTER)).updated_at >= before


class TestInMemoryRepository:
    """Lock-guarded counters in the in-memory repository."""

    @pytest.mark.asyncio
    async def test_concurrent_failures_are_all_counted(self, memory_repository):
        import asyncio

        await _initialize_all(memory_repository)

        results = await asyncio.gather(*(memory_repository.record_failure(PROVIDER_OPENAI) for _ in range(10)))

        assert sorted(results) == list(range(1, 11))
        assert (await memory_repository.get_state(PROVIDER_OPENAI)).failure_count == 10
