from typing import Any, Dict, Optional

import openai
from openai import AsyncOpenAI

from flapframes.ai.errors import AIProviderError, MissingAPIKeyError, ProviderErrorKind, error_for_status
from flapframes.ai.types import AIGenerationRequest, AIGenerationResponse


class OpenAIClient:
    """Chat completions against the OpenAI API."""

    name = "openai"

    def __init__(self, api_key: str, model: str = "gpt-4.1", client: Optional[AsyncOpenAI] = None):
        if not api_key or not api_key.strip():
            raise MissingAPIKeyError(self.name)
        self.client = client or AsyncOpenAI(api_key=api_key)
        self.model = model

    async def generate(self, request: AIGenerationRequest) -> AIGenerationResponse:
        params: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.user_prompt},
            ],
            "max_tokens": request.max_tokens,
        }
        if request.temperature is not None:
            params["temperature"] = request.temperature

        try:
            response = await self.client.chat.completions.create(**params)
        except openai.APIStatusError as e:
            raise error_for_status(e.message, self.name, e.status_code, e) from e
        except openai.APIConnectionError as e:
            raise AIProviderError(str(e), self.name, kind=ProviderErrorKind.NETWORK, original_error=e) from e

        if not response.choices or response.choices[0].message is None:
            raise AIProviderError(
                "Invalid response from OpenAI", self.name, kind=ProviderErrorKind.MALFORMED_RESPONSE
            )

        choice = response.choices[0]
        return AIGenerationResponse(
            text=choice.message.content or "",
            model=response.model,
            tokens_used=response.usage.total_tokens if response.usage else None,
            finish_reason=choice.finish_reason,
        )

    async def validate_connection(self) -> bool:
        try:
            await self.client.models.list()
            return True
        except openai.OpenAIError:
            return False
