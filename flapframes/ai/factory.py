from typing import Optional

from flapframes.ai.anthropic_client import AnthropicClient
from flapframes.ai.model_tiers import AIProviderType
from flapframes.ai.openai_client import OpenAIClient
from flapframes.ai.types import AIProvider


def create_ai_provider(provider: str, api_key: str, model: Optional[str] = None) -> AIProvider:
    provider_type = AIProviderType(provider)
    if provider_type is AIProviderType.OPENAI:
        return OpenAIClient(api_key, model) if model else OpenAIClient(api_key)
    return AnthropicClient(api_key, model) if model else AnthropicClient(api_key)
