"""
Model tiers per provider.

A tier is a cost/quality class. Generators pick one at construction time;
the selector maps it onto a concrete model for whichever provider is used.
"""

from enum import Enum
from typing import Dict


class ModelTier(str, Enum):
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"

    def __str__(self) -> str:
        return self.name


class AIProviderType(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


MODEL_TIERS: Dict[str, Dict[ModelTier, str]] = {
    AIProviderType.OPENAI.value: {
        ModelTier.LIGHT: "gpt-4.1-nano",
        ModelTier.MEDIUM: "gpt-4.1-mini",
        ModelTier.HEAVY: "gpt-4.1",
    },
    AIProviderType.ANTHROPIC.value: {
        ModelTier.LIGHT: "claude-haiku-4-5-20251001",
        ModelTier.MEDIUM: "claude-sonnet-4-5-20250929",
        ModelTier.HEAVY: "claude-opus-4-5-20251101",
    },
}
