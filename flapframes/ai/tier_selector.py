from dataclasses import dataclass
from typing import List, Optional

from flapframes.ai.model_tiers import MODEL_TIERS, ModelTier


@dataclass(frozen=True)
class ModelSelection:
    provider: str
    model: str
    tier: Optional[ModelTier] = None


class ModelTierSelector:
    """
    Picks a (provider, model) pair for a tier, with a cross-provider alternate.

    Args:
        preferred_provider: provider to use whenever it is available
        available_providers: providers with credentials, in fallback order
    """

    def __init__(self, preferred_provider: str, available_providers: List[str]):
        unknown = [p for p in available_providers if p not in MODEL_TIERS]
        if unknown:
            raise ValueError(f"Unknown AI providers: {', '.join(unknown)}")
        if not available_providers:
            raise ValueError("At least one AI provider must be available")
        self.preferred_provider = preferred_provider
        self.available_providers = list(available_providers)

    def select(self, tier: ModelTier) -> ModelSelection:
        tier = ModelTier(tier)
        if self.preferred_provider in self.available_providers:
            provider = self.preferred_provider
        else:
            provider = self.available_providers[0]
        return ModelSelection(provider=provider, model=MODEL_TIERS[provider][tier], tier=tier)

    def get_alternate(self, current: ModelSelection) -> Optional[ModelSelection]:
        """Same tier on a different provider, or None when only one is configured."""
        alternates = [p for p in self.available_providers if p != current.provider]
        if not alternates:
            return None

        provider = alternates[0]
        tier = self._tier_of(current) or ModelTier.MEDIUM
        return ModelSelection(provider=provider, model=MODEL_TIERS[provider][tier], tier=tier)

    @staticmethod
    def _tier_of(selection: ModelSelection) -> Optional[ModelTier]:
        if selection.tier is not None:
            return ModelTier(selection.tier)
        for tier, model in MODEL_TIERS.get(selection.provider, {}).items():
            if model == selection.model:
                return tier
        return None
