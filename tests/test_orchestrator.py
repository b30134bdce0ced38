"""
Tests for FrameOrchestrator gating on the manual circuits.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from flapframes.ai.errors import AllProvidersFailedError
from flapframes.content.orchestrator import FrameOrchestrator
from flapframes.content.types import GeneratedContent, GenerationContext
from flapframes.core.circuit_breaker import CircuitBreakerService
from flapframes.core.circuit_registry import MASTER, SLEEP_MODE, CircuitState


def _generator(content=None, error=None):
    generator = MagicMock()
    generator.generator_id = "haiku"
    generator.generate = AsyncMock(
        return_value=content or GeneratedContent(text="HELLO", metadata={"provider": "openai"}),
        side_effect=error,
    )
    return generator


class TestFrameOrchestrator:
    @pytest.mark.asyncio
    async def test_generates_when_circuits_allow(self, circuit_breaker):
        generator = _generator()

        result = await FrameOrchestrator(circuit_breaker).run(generator)

        assert result.success is True
        assert result.blocked is False
        assert result.content.text == "HELLO"
        assert result.generator_id == "haiku"
        generator.generate.assert_awaited_once()
        assert isinstance(generator.generate.call_args.args[0], GenerationContext)

    @pytest.mark.asyncio
    async def test_master_off_blocks(self, circuit_breaker):
        await circuit_breaker.set_circuit_state(MASTER, CircuitState.OFF)
        generator = _generator()

        result = await FrameOrchestrator(circuit_breaker).run(generator)

        assert result.success is False
        assert result.blocked is True
        assert result.block_reason == "master_circuit_off"
        generator.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sleep_mode_on_blocks(self, circuit_breaker):
        await circuit_breaker.set_circuit_state(SLEEP_MODE, CircuitState.ON)
        generator = _generator()

        result = await FrameOrchestrator(circuit_breaker).run(generator)

        assert result.blocked is True
        assert result.block_reason == "sleep_mode"
        generator.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_master_checked_before_sleep_mode(self, circuit_breaker):
        await circuit_breaker.set_circuit_state(MASTER, CircuitState.OFF)
        await circuit_breaker.set_circuit_state(SLEEP_MODE, CircuitState.ON)

        result = await FrameOrchestrator(circuit_breaker).run(_generator())

        assert result.block_reason == "master_circuit_off"

    @pytest.mark.asyncio
    async def test_passes_context_through(self, circuit_breaker):
        generator = _generator()
        context = GenerationContext(update_type="minor")

        await FrameOrchestrator(circuit_breaker).run(generator, context)

        assert generator.generate.call_args.args[0] is context

    @pytest.mark.asyncio
    async def test_generation_failure_propagates(self, circuit_breaker):
        generator = _generator(error=AllProvidersFailedError("LIGHT", RuntimeError("down")))

        with pytest.raises(AllProvidersFailedError):
            await FrameOrchestrator(circuit_breaker).run(generator)

    @pytest.mark.asyncio
    async def test_storage_outage_lets_generation_through(self):
        repository = MagicMock()
        repository.get_state = AsyncMock(side_effect=ConnectionError("db down"))
        generator = _generator()

        result = await FrameOrchestrator(CircuitBreakerService(repository)).run(generator)

        assert result.success is True
