from typing import Dict, Mapping, Optional, Type

from flapframes.ai.tier_selector import ModelTierSelector
from flapframes.content.generators.ai_prompt_generator import AIPromptGenerator
from flapframes.content.generators.fortune_cookie import FortuneCookieGenerator
from flapframes.content.generators.haiku import HaikuGenerator
from flapframes.content.generators.motivational import MotivationalGenerator
from flapframes.content.generators.novel_insight import NovelInsightGenerator
from flapframes.content.prompt_loader import PromptLoader

GENERATORS: Dict[str, Type[AIPromptGenerator]] = {
    cls.generator_id: cls
    for cls in (HaikuGenerator, FortuneCookieGenerator, MotivationalGenerator, NovelInsightGenerator)
}


class UnknownGeneratorError(KeyError):
    pass


def create_generator(
    generator_id: str,
    circuit_breaker=None,
    api_keys: Optional[Mapping[str, str]] = None,
    preferred_provider: Optional[str] = None,
    prompts_dir: Optional[str] = None,
) -> AIPromptGenerator:
    """
    Build a registered generator wired to configured credentials.

    Raises:
        UnknownGeneratorError: no generator registered under ``generator_id``
        ValueError: no AI provider has an API key configured
    """
    from flapframes.core.config import settings

    try:
        generator_cls = GENERATORS[generator_id]
    except KeyError:
        raise UnknownGeneratorError(generator_id) from None

    keys = dict(api_keys) if api_keys is not None else settings.api_keys()
    selector = ModelTierSelector(
        preferred_provider or settings.PREFERRED_AI_PROVIDER,
        list(keys.keys()),
    )
    return generator_cls(
        PromptLoader(prompts_dir or settings.PROMPTS_DIR),
        selector,
        keys,
        circuit_breaker=circuit_breaker,
    )


__all__ = [
    "GENERATORS",
    "AIPromptGenerator",
    "FortuneCookieGenerator",
    "HaikuGenerator",
    "MotivationalGenerator",
    "NovelInsightGenerator",
    "UnknownGeneratorError",
    "create_generator",
]
