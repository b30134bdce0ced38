"""Stand-ins for AI provider clients."""

from typing import List
from unittest.mock import AsyncMock

from flapframes.ai.types import AIGenerationResponse


class FakeProvider:
    """Stands in for an SDK-backed provider; ``generate`` is an AsyncMock."""

    def __init__(self, name: str, model: str = "fake-model", text: str = "HELLO BOARD", error=None):
        self.name = name
        self.model = model
        self.generate = AsyncMock()
        if error is not None:
            self.generate.side_effect = error
        else:
            self.generate.return_value = AIGenerationResponse(text=text, model=model, tokens_used=42)
        self.validate_connection = AsyncMock(return_value=True)


class FakeProviderFactory:
    """Callable matching ``create_ai_provider`` that hands out prepared fakes by provider name."""

    def __init__(self, **providers: FakeProvider):
        self.providers = providers
        self.calls: List[tuple] = []

    def __call__(self, provider: str, api_key: str, model=None):
        self.calls.append((provider, api_key, model))
        return self.providers[provider]


