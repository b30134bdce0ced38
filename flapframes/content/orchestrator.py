from typing import Optional

from flapframes.content.generators.ai_prompt_generator import AIPromptGenerator
from flapframes.content.types import GenerationContext, OrchestratorResult
from flapframes.core.circuit_registry import MASTER, SLEEP_MODE, CircuitState
from flapframes.core.logging_config import get_logger

logger = get_logger(__name__)


class FrameOrchestrator:
    """
    Runs one generation cycle behind the manual circuits.

    MASTER off blocks everything. SLEEP_MODE on blocks generation for the
    night. Both checks inherit the breaker's fail-open behavior, so a storage
    outage lets the cycle through.
    """

    def __init__(self, circuit_breaker):
        self.circuit_breaker = circuit_breaker

    async def run(
        self,
        generator: AIPromptGenerator,
        context: Optional[GenerationContext] = None,
    ) -> OrchestratorResult:
        if await self.circuit_breaker.is_circuit_open(MASTER):
            logger.info("generation blocked", reason="master_circuit_off", generator_id=generator.generator_id)
            return OrchestratorResult(
                success=False,
                generator_id=generator.generator_id,
                blocked=True,
                block_reason="master_circuit_off",
            )

        sleep_mode = await self.circuit_breaker.get_circuit_status(SLEEP_MODE)
        if sleep_mode is not None and sleep_mode.state == CircuitState.ON.value:
            logger.info("generation blocked", reason="sleep_mode", generator_id=generator.generator_id)
            return OrchestratorResult(
                success=False,
                generator_id=generator.generator_id,
                blocked=True,
                block_reason="sleep_mode",
            )

        content = await generator.generate(context or GenerationContext())
        logger.info(
            "frame generated",
            generator_id=generator.generator_id,
            provider=content.metadata.get("provider"),
            failed_over=content.metadata.get("failed_over", False),
        )
        return OrchestratorResult(success=True, generator_id=generator.generator_id, content=content)
