import random
from typing import Any, Dict

from flapframes.ai.model_tiers import ModelTier
from flapframes.content.generators.ai_prompt_generator import AIPromptGenerator
from flapframes.content.types import GenerationContext

LENSES = [
    "an economist",
    "a structural engineer",
    "a marine biologist",
    "a medieval historian",
    "a jazz drummer",
    "a chess grandmaster",
    "a city bus driver",
    "a beekeeper",
]


class NovelInsightGenerator(AIPromptGenerator):
    """An unexpected observation about everyday life, seen through a random professional lens."""

    generator_id = "novel-insight"
    model_tier = ModelTier.MEDIUM
    system_prompt_file = "major-update-base.txt"
    user_prompt_file = "novel-insight.txt"

    def prompt_variables(self, context: GenerationContext) -> Dict[str, Any]:
        return {"lens": random.choice(LENSES)}
