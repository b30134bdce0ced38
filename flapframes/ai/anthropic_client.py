from typing import Any, Dict, Optional

import anthropic
from anthropic import AsyncAnthropic

from flapframes.ai.errors import AIProviderError, MissingAPIKeyError, ProviderErrorKind, error_for_status
from flapframes.ai.types import AIGenerationRequest, AIGenerationResponse


class AnthropicClient:
    """Messages API against Anthropic."""

    name = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-5-20250929",
        client: Optional[AsyncAnthropic] = None,
    ):
        if not api_key or not api_key.strip():
            raise MissingAPIKeyError(self.name)
        self.client = client or AsyncAnthropic(api_key=api_key)
        self.model = model

    async def generate(self, request: AIGenerationRequest) -> AIGenerationResponse:
        params: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": request.max_tokens,
            "system": request.system_prompt,
            "messages": [{"role": "user", "content": request.user_prompt}],
        }
        if request.temperature is not None:
            params["temperature"] = request.temperature

        try:
            response = await self.client.messages.create(**params)
        except anthropic.APIStatusError as e:
            raise error_for_status(e.message, self.name, e.status_code, e) from e
        except anthropic.APIConnectionError as e:
            raise AIProviderError(str(e), self.name, kind=ProviderErrorKind.NETWORK, original_error=e) from e

        text_blocks = [block.text for block in response.content if getattr(block, "type", None) == "text"]
        if not text_blocks:
            raise AIProviderError(
                "Invalid response from Anthropic", self.name, kind=ProviderErrorKind.MALFORMED_RESPONSE
            )

        usage = response.usage
        return AIGenerationResponse(
            text="".join(text_blocks),
            model=response.model,
            tokens_used=(usage.input_tokens + usage.output_tokens) if usage else None,
            finish_reason=response.stop_reason,
        )

    async def validate_connection(self) -> bool:
        try:
            await self.client.models.list(limit=1)
            return True
        except anthropic.AnthropicError:
            return False
