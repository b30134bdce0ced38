from flapframes.ai.model_tiers import ModelTier
from flapframes.content.generators.ai_prompt_generator import AIPromptGenerator


class MotivationalGenerator(AIPromptGenerator):
    generator_id = "motivational"
    model_tier = ModelTier.LIGHT
    system_prompt_file = "major-update-base.txt"
    user_prompt_file = "motivational.txt"
