from flapframes.ai.model_tiers import ModelTier
from flapframes.content.generators.ai_prompt_generator import AIPromptGenerator


class FortuneCookieGenerator(AIPromptGenerator):
    generator_id = "fortune-cookie"
    model_tier = ModelTier.LIGHT
    system_prompt_file = "major-update-base.txt"
    user_prompt_file = "fortune-cookie.txt"
