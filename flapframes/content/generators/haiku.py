import random
from typing import Any, Dict

from flapframes.ai.model_tiers import ModelTier
from flapframes.content.generators.ai_prompt_generator import AIPromptGenerator
from flapframes.content.types import GenerationContext

TOPICS = [
    "Trains",
    "Business",
    "Architecture",
    "Food",
    "Comedy",
    "EDM Music",
    "Software development",
    "Aviation",
    "Disneyland",
    "Street lighting",
    "Current Weather",
    "Current Date",
    "Current holidays",
]


class HaikuGenerator(AIPromptGenerator):
    """Three-line haiku on a randomly chosen topic."""

    generator_id = "haiku"
    model_tier = ModelTier.LIGHT
    system_prompt_file = "major-update-base.txt"
    user_prompt_file = "haiku.txt"

    def prompt_variables(self, context: GenerationContext) -> Dict[str, Any]:
        return {"topic": random.choice(TOPICS)}
