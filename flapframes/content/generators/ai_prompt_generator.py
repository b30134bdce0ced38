"""
Base class for generators that turn a prompt pair into frame text via an AI provider.

Generation is a one-shot failover: the preferred provider for the generator's
tier is tried once, then the same tier on the alternate provider once. There
are no retries within a provider and no backoff. Each attempt is gated on the
provider circuit and its outcome is reported back to the circuit breaker.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping, Optional

from flapframes.ai.errors import AllProvidersFailedError, CircuitOpenError, MissingAPIKeyError
from flapframes.ai.factory import create_ai_provider
from flapframes.ai.model_tiers import ModelTier
from flapframes.ai.tier_selector import ModelSelection, ModelTierSelector
from flapframes.ai.types import AIGenerationRequest, AIProvider
from flapframes.content.prompt_loader import PromptLoader
from flapframes.content.types import GeneratedContent, GenerationContext, GeneratorValidationResult
from flapframes.core.circuit_registry import provider_circuit_id
from flapframes.core.logging_config import get_logger

logger = get_logger(__name__)

ProviderFactory = Callable[[str, str, Optional[str]], AIProvider]


class AIPromptGenerator(ABC):
    generator_id: str = ""
    model_tier: ModelTier = ModelTier.MEDIUM

    def __init__(
        self,
        prompt_loader: PromptLoader,
        model_tier_selector: ModelTierSelector,
        api_keys: Mapping[str, str],
        circuit_breaker=None,
        model_tier: Optional[ModelTier] = None,
        provider_factory: ProviderFactory = create_ai_provider,
    ):
        self.prompt_loader = prompt_loader
        self.model_tier_selector = model_tier_selector
        self.api_keys = dict(api_keys)
        self.circuit_breaker = circuit_breaker
        if model_tier is not None:
            self.model_tier = ModelTier(model_tier)
        self.provider_factory = provider_factory

    @property
    @abstractmethod
    def system_prompt_file(self) -> str: ...

    @property
    @abstractmethod
    def user_prompt_file(self) -> str: ...

    def prompt_variables(self, context: GenerationContext) -> Dict[str, Any]:
        """Template variables for the user prompt. Override to inject per-run values."""
        return {}

    def format_user_prompt(self, user_prompt: str, context: GenerationContext) -> str:
        return f"{user_prompt}\n\nContext: {context.to_prompt_json()}"

    async def generate(self, context: Optional[GenerationContext] = None) -> GeneratedContent:
        context = context or GenerationContext()
        system_prompt = await self.prompt_loader.load_prompt("system", self.system_prompt_file)
        variables = self.prompt_variables(context)
        user_prompt = await self.prompt_loader.load_prompt_with_variables("user", self.user_prompt_file, variables)
        request = AIGenerationRequest(
            system_prompt=system_prompt,
            user_prompt=self.format_user_prompt(user_prompt, context),
        )

        primary = self.model_tier_selector.select(self.model_tier)
        last_error: Optional[BaseException] = None

        if await self._can_attempt(primary):
            try:
                return self._with_variables(await self._attempt(primary, request), variables)
            except MissingAPIKeyError:
                raise
            except Exception as e:
                last_error = e
        else:
            last_error = CircuitOpenError(primary.provider, provider_circuit_id(primary.provider))

        alternate = self.model_tier_selector.get_alternate(primary)
        if alternate is not None:
            if await self._can_attempt(alternate):
                try:
                    content = await self._attempt(alternate, request)
                except Exception as e:
                    # A missing alternate key is folded into the aggregated error
                    last_error = e
                else:
                    content.metadata["failed_over"] = True
                    content.metadata["primary_error"] = str(last_error)
                    logger.info(
                        "generation failed over",
                        generator_id=self.generator_id,
                        from_provider=primary.provider,
                        to_provider=alternate.provider,
                        tier=str(self.model_tier),
                    )
                    return self._with_variables(content, variables)
            else:
                last_error = CircuitOpenError(alternate.provider, provider_circuit_id(alternate.provider))

        raise AllProvidersFailedError(str(self.model_tier), last_error)

    async def validate(self) -> GeneratorValidationResult:
        errors = []
        for kind, filename in (("system", self.system_prompt_file), ("user", self.user_prompt_file)):
            if not self.prompt_loader.path_for(kind, filename).is_file():
                errors.append(f"Missing {kind} prompt: {filename}")

        selection = self.model_tier_selector.select(self.model_tier)
        if not self.api_keys.get(selection.provider):
            errors.append(f"API key not found for provider: {selection.provider}")

        return GeneratorValidationResult(valid=not errors, errors=errors)

    async def _can_attempt(self, selection: ModelSelection) -> bool:
        if self.circuit_breaker is None:
            return True
        available = await self.circuit_breaker.is_provider_available(provider_circuit_id(selection.provider))
        if not available:
            logger.warning(
                "provider skipped, circuit open",
                generator_id=self.generator_id,
                provider=selection.provider,
            )
        return available

    def _create_provider(self, selection: ModelSelection) -> AIProvider:
        api_key = self.api_keys.get(selection.provider)
        if not api_key:
            raise MissingAPIKeyError(selection.provider)
        return self.provider_factory(selection.provider, api_key, selection.model)

    async def _attempt(self, selection: ModelSelection, request: AIGenerationRequest) -> GeneratedContent:
        provider = self._create_provider(selection)
        circuit_id = provider_circuit_id(selection.provider)

        try:
            response = await provider.generate(request)
        except Exception as e:
            logger.warning(
                "provider attempt failed",
                generator_id=self.generator_id,
                provider=selection.provider,
                model=selection.model,
                tier=str(self.model_tier),
                error=str(e),
            )
            if self.circuit_breaker is not None:
                await self.circuit_breaker.record_provider_failure(circuit_id, e)
            raise

        if self.circuit_breaker is not None:
            await self.circuit_breaker.record_provider_success(circuit_id)

        return GeneratedContent(
            text=response.text,
            output_mode="text",
            metadata={
                "model": response.model or selection.model,
                "tier": str(self.model_tier),
                "provider": selection.provider,
                "tokens_used": response.tokens_used,
            },
        )

    @staticmethod
    def _with_variables(content: GeneratedContent, variables: Dict[str, Any]) -> GeneratedContent:
        # Attempt metadata (provider, model, tier, failover) wins over template variables
        content.metadata = {**variables, **content.metadata}
        return content
