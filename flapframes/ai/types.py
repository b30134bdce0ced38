from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol


@dataclass
class AIGenerationRequest:
    system_prompt: str
    user_prompt: str
    max_tokens: int = 512
    temperature: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AIGenerationResponse:
    text: str
    model: str
    tokens_used: Optional[int] = None
    finish_reason: Optional[str] = None


class AIProvider(Protocol):
    """A chat model behind one vendor API."""

    name: str

    async def generate(self, request: AIGenerationRequest) -> AIGenerationResponse: ...

    async def validate_connection(self) -> bool: ...
